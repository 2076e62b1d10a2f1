"""
Derived views over a reconciliation session.

All functions are pure and are called on every read; nothing here is cached,
so a view can never lag behind the session it was computed from.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..models.statement import ManualDecision, ResultSummary, Statement
from ..utils.money import round_money, round_percent, sum_money
from .ledger import ManualDecisionLedger
from .session import SessionStore


@dataclass(frozen=True)
class MatchSummary:
    """Outcome of automatic matching."""

    total: int
    matched: int
    unmatched: int
    rate: int  # whole percent


@dataclass(frozen=True)
class ManualSummary:
    """Progress of manual adjudication."""

    total: int
    included: int
    pending: int


@dataclass(frozen=True)
class AmountTotals:
    """Monetary totals of the statement, rounded to cents."""

    credits: Decimal
    debits: Decimal
    net: Decimal
    matched_amount: Decimal
    manual_included_amount: Decimal
    ignored_amount: Decimal
    declared_balance: Optional[Decimal] = None
    balance_gap: Optional[Decimal] = None


@dataclass(frozen=True)
class ConfirmationSummary:
    """Read-only projection shown before the final confirmation."""

    statement: Optional[Statement]
    total_operations: int
    auto_matches_count: int
    manual_included_count: int
    manual_ignored_count: int
    manual_included: tuple[ManualDecision, ...]
    manual_ignored: tuple[ManualDecision, ...]
    manual_comment: str
    final_comment: str


def match_summary(session: SessionStore) -> MatchSummary:
    """Counts and rate of automatically matched operations."""
    matched = len(session.automatic_matches)
    unmatched = len(session.ledger)
    total = matched + unmatched
    return MatchSummary(
        total=total,
        matched=matched,
        unmatched=unmatched,
        rate=round_percent(matched, total),
    )


def manual_summary(ledger: ManualDecisionLedger) -> ManualSummary:
    return ManualSummary(
        total=len(ledger),
        included=len(ledger.included()),
        pending=len(ledger.pending()),
    )


def progress(stage_index: int, stage_count: int) -> int:
    """
    Percentage of the workflow covered by the current stage.

    Args:
        stage_index: Zero-based index of the current stage
        stage_count: Number of stages in the workflow

    Returns:
        Whole percent in [0, 100]; 100 for a single-stage workflow
    """
    if stage_count <= 1:
        return 100
    value = round_percent(stage_index, stage_count - 1)
    return max(0, min(100, value))


def confirmation_summary(session: SessionStore) -> ConfirmationSummary:
    """Partition manual decisions and count operations for the confirmation view."""
    ledger = session.ledger
    included = tuple(ledger.included())
    ignored = tuple(ledger.ignored())

    statement = session.statement
    # Statements imported without an operation list are counted from the
    # matching outcome instead.
    if statement is not None and statement.operations is not None:
        total_operations = len(statement.operations)
    else:
        total_operations = len(session.automatic_matches) + len(ledger)

    return ConfirmationSummary(
        statement=statement,
        total_operations=total_operations,
        auto_matches_count=len(session.automatic_matches),
        manual_included_count=len(included),
        manual_ignored_count=len(ignored),
        manual_included=included,
        manual_ignored=ignored,
        manual_comment=session.manual_comment,
        final_comment=session.final_comment,
    )


def amount_totals(session: SessionStore) -> AmountTotals:
    """
    Monetary totals and balance gap of the current session.

    The operations considered are the automatic matches plus the ledger once
    matching has run, or the statement's operations before that.
    """
    if session.auto_match_executed:
        operations = list(session.automatic_matches) + [
            d.operation for d in session.ledger
        ]
    elif session.statement is not None:
        operations = list(session.statement.operations or [])
    else:
        operations = []

    signed = [op.signed_amount for op in operations]
    credits = sum_money(a for a in signed if a > 0)
    debits = sum_money(-a for a in signed if a < 0)
    net = sum_money(signed)

    statement = session.statement
    declared = statement.declared_balance if statement else None
    opening = statement.balance_before if statement else None

    balance_gap: Optional[Decimal] = None
    if declared is not None and opening is not None:
        balance_gap = round_money(declared - (opening + net))

    return AmountTotals(
        credits=credits,
        debits=debits,
        net=net,
        matched_amount=sum_money(op.signed_amount for op in session.automatic_matches),
        manual_included_amount=sum_money(
            d.operation.signed_amount for d in session.ledger.included()
        ),
        ignored_amount=sum_money(
            d.operation.signed_amount for d in session.ledger.ignored()
        ),
        declared_balance=round_money(declared) if declared is not None else None,
        balance_gap=balance_gap,
    )


def result_summary(session: SessionStore) -> ResultSummary:
    """Summary figures recorded alongside a confirmation."""
    confirmation = confirmation_summary(session)
    totals = amount_totals(session)
    remaining = len(session.ledger.pending())
    statement = session.statement

    return ResultSummary(
        total_operations=confirmation.total_operations,
        matched_automatically=confirmation.auto_matches_count,
        matched_manually=confirmation.manual_included_count,
        ignored=confirmation.manual_ignored_count,
        remaining=remaining,
        balance_gap=totals.balance_gap,
        currency=statement.currency if statement else None,
        completed_at=datetime.now(),
    )
