"""
Tests for derived views and money rounding.
"""

from decimal import Decimal

import pytest

from statement_recon.models import OperationDirection
from statement_recon.utils.money import round_money, round_percent, sum_money
from statement_recon.workflow import SessionStore
from statement_recon.workflow import aggregation

from .factories import make_operation, make_statement, split_response


class TestMoney:
    """Rounding helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("0.125", "0.13"),
            ("-0.125", "-0.13"),
            ("0.124", "0.12"),
            ("10", "10.00"),
        ],
    )
    def test_round_money_half_away_from_zero(self, value, expected):
        assert round_money(value) == Decimal(expected)

    def test_sum_money_is_exact_before_rounding(self):
        assert sum_money([0.1, 0.2, Decimal("0.005")]) == Decimal("0.31")

    @pytest.mark.parametrize(
        "num,den,expected",
        [(7, 10, 70), (2, 3, 67), (1, 3, 33), (1, 8, 13), (0, 5, 0), (3, 0, 0)],
    )
    def test_round_percent(self, num, den, expected):
        assert round_percent(num, den) == expected


class TestMatchSummary:
    """Counts after automatic matching."""

    def test_seven_of_ten(self, matched_session):
        summary = aggregation.match_summary(matched_session)

        assert summary.total == 10
        assert summary.matched == 7
        assert summary.unmatched == 3
        assert summary.rate == 70

    def test_empty_session(self):
        summary = aggregation.match_summary(SessionStore())

        assert summary.total == 0
        assert summary.rate == 0

    def test_unmatched_counts_ledger(self, statement):
        session = SessionStore()
        session.load_statement(statement)
        session.apply_match(split_response(statement, matched_count=2))

        summary = aggregation.match_summary(session)
        assert summary.unmatched == len(session.ledger) == 8
        assert summary.rate == 20


@pytest.mark.parametrize(
    "index,expected", [(0, 0), (1, 33), (2, 67), (3, 100)]
)
def test_progress_over_four_stages(index, expected):
    assert aggregation.progress(index, 4) == expected


def test_progress_single_stage_is_complete():
    assert aggregation.progress(0, 1) == 100


def test_manual_summary(matched_session):
    matched_session.toggle_include("op8", True)
    matched_session.set_notes("op9", "Fee")

    summary = aggregation.manual_summary(matched_session.ledger)

    assert summary.total == 3
    assert summary.included == 1
    assert summary.pending == 1


class TestConfirmationSummary:
    """Confirmation view partitioning."""

    def test_partitions_decisions(self, matched_session):
        matched_session.toggle_include("op8", True)
        matched_session.set_notes("op9", "Fee")
        matched_session.set_notes("op10", "Duplicate")
        matched_session.set_manual_comment("checked with treasury")

        summary = aggregation.confirmation_summary(matched_session)

        assert summary.total_operations == 10
        assert summary.auto_matches_count == 7
        assert summary.manual_included_count == 1
        assert summary.manual_ignored_count == 2
        assert [d.operation_id for d in summary.manual_ignored] == ["op9", "op10"]
        assert summary.manual_comment == "checked with treasury"

    def test_counts_from_matching_without_operation_list(self, operations):
        bare = make_statement(None)
        session = SessionStore()
        session.load_statement(bare)
        session.apply_match(
            split_response(make_statement(operations), matched_count=4).model_copy(
                update={"statement": None}
            )
        )

        summary = aggregation.confirmation_summary(session)

        assert session.statement.operations is None
        assert summary.total_operations == 10

    def test_statement_operations_take_precedence(self, statement):
        session = SessionStore()
        session.load_statement(statement)
        response = split_response(statement, matched_count=2).model_copy(
            update={"unmatched_operations": []}
        )
        session.apply_match(response)

        assert aggregation.confirmation_summary(session).total_operations == 10


class TestAmountTotals:
    """Monetary totals and balance gap."""

    def test_credits_and_debits(self):
        operations = [
            make_operation(1, amount="250.10"),
            make_operation(2, amount="40.05", direction=OperationDirection.DEBIT),
            make_operation(3, amount="-9.95"),
        ]
        session = SessionStore()
        session.load_statement(make_statement(operations))

        totals = aggregation.amount_totals(session)

        assert totals.credits == Decimal("250.10")
        assert totals.debits == Decimal("50.00")
        assert totals.net == Decimal("200.10")

    def test_balance_gap(self, matched_session):
        totals = aggregation.amount_totals(matched_session)

        # Ten credits of 100.00 on an opening balance of 1000.00
        assert totals.net == Decimal("1000.00")
        assert totals.declared_balance == Decimal("2000.00")
        assert totals.balance_gap == Decimal("0.00")

    def test_gap_unknown_without_opening_balance(self, operations):
        statement = make_statement(operations).model_copy(
            update={"balance_before": None}
        )
        session = SessionStore()
        session.load_statement(statement)

        assert aggregation.amount_totals(session).balance_gap is None

    def test_split_by_decision(self, matched_session):
        matched_session.toggle_include("op8", True)
        matched_session.set_notes("op9", "Fee")

        totals = aggregation.amount_totals(matched_session)

        assert totals.matched_amount == Decimal("700.00")
        assert totals.manual_included_amount == Decimal("100.00")
        assert totals.ignored_amount == Decimal("200.00")

    def test_fresh_session_is_zero(self):
        totals = aggregation.amount_totals(SessionStore())

        assert totals.net == Decimal("0.00")
        assert totals.declared_balance is None


def test_result_summary(matched_session):
    for op_id in ("op8", "op9"):
        matched_session.toggle_include(op_id, True)
    matched_session.set_notes("op10", "Reversal")

    summary = aggregation.result_summary(matched_session)

    assert summary.total_operations == 10
    assert summary.matched_automatically == 7
    assert summary.matched_manually == 2
    assert summary.ignored == 1
    assert summary.remaining == 0
    assert summary.currency == "EUR"
    assert summary.completed_at is not None
