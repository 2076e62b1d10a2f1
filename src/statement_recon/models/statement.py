"""Data models for imported statements, match responses and confirmation records."""

from dataclasses import dataclass
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Amounts travel as JSON numbers; they are already cent-precise.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class OperationDirection(Enum):
    """Direction of a statement line from the account holder's perspective."""

    CREDIT = "credit"  # Money in
    DEBIT = "debit"  # Money out


class OperationStatus(Enum):
    """Match status annotated by the matching service."""

    MATCHED = "matched"
    PENDING = "pending"
    IGNORED = "ignored"
    MANUAL = "manual"


class ResultStatus(Enum):
    """Lifecycle status of a confirmation record on the server."""

    DRAFT = "draft"
    PENDING = "pending"
    VALIDATED = "validated"


class WireModel(BaseModel):
    """Base for models exchanged with the reconciliation API (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire aliases, dropping unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class OperationSuggestion(WireModel):
    """A candidate ledger transaction proposed for an operation."""

    transaction_id: str
    label: str = ""
    score: float = 0.0


class Operation(WireModel):
    """One bank-statement line."""

    id: str
    date: dt.date
    label: str = ""
    amount: Money
    direction: Optional[OperationDirection] = None
    reference: Optional[str] = None
    category: Optional[str] = None

    # Match metadata
    matched_transaction_id: Optional[str] = None
    matched_at: Optional[dt.datetime] = None
    matching_score: Optional[float] = None
    status: Optional[OperationStatus] = None
    notes: Optional[str] = None
    suggestions: list[OperationSuggestion] = Field(default_factory=list)

    @property
    def signed_amount(self) -> Decimal:
        """Amount with debits negative, whether or not the service signed them."""
        if self.direction == OperationDirection.DEBIT and self.amount > 0:
            return -self.amount
        return self.amount


class Statement(WireModel):
    """One imported bank statement."""

    id: str
    reference: Optional[str] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None
    imported_at: Optional[dt.datetime] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    currency: Optional[str] = None

    # Balances as declared by the bank
    balance_before: Optional[Money] = None
    balance: Optional[Money] = None
    balance_after: Optional[Money] = None
    total_credits: Optional[Money] = None
    total_debits: Optional[Money] = None

    # None when the parsing service did not return any operation list
    operations: Optional[list[Operation]] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def declared_balance(self) -> Optional[Decimal]:
        """Closing balance declared on the statement."""
        if self.balance_after is not None:
            return self.balance_after
        return self.balance


class MatchStats(WireModel):
    """Statistics reported by the matching service."""

    match_rate: float = 0.0
    automatic_matches: int = 0
    total_operations: int = 0


class MatchResponse(WireModel):
    """Response of the automatic matching call."""

    statement: Optional[Statement] = None
    matched_operations: list[Operation] = Field(default_factory=list)
    unmatched_operations: list[Operation] = Field(default_factory=list)
    suggested_operations: list[Operation] = Field(default_factory=list)
    stats: Optional[MatchStats] = None


class ResultSummary(WireModel):
    """Aggregate figures of a confirmed reconciliation."""

    total_operations: int = 0
    matched_automatically: int = 0
    matched_manually: int = 0
    ignored: int = 0
    remaining: int = 0
    balance_gap: Optional[Money] = None
    currency: Optional[str] = None
    completed_at: Optional[dt.datetime] = None


class ReconciliationResult(WireModel):
    """Terminal, write-once confirmation record returned by the API."""

    statement: Statement
    matched_operations: list[Operation] = Field(default_factory=list)
    manual_decisions: list[Operation] = Field(default_factory=list)
    unmatched_operations: list[Operation] = Field(default_factory=list)
    summary: Optional[ResultSummary] = None
    status: ResultStatus = ResultStatus.PENDING
    validated_at: Optional[dt.datetime] = None
    validated_by: Optional[str] = None
    notes: Optional[str] = None
    acknowledgement: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class ManualDecision:
    """
    Adjudication of one operation the automatic matcher left unmatched.

    A decision is resolved when the operation is included or when the
    adjudicator wrote a note explaining why it is left out.
    """

    operation: Operation
    include: bool = False
    transaction_id: Optional[str] = None
    notes: str = ""

    @property
    def operation_id(self) -> str:
        return self.operation.id

    @property
    def is_resolved(self) -> bool:
        return self.include or bool(self.notes.strip())

    @property
    def is_pending(self) -> bool:
        return not self.is_resolved
