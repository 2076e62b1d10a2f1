"""Body of the final confirmation call."""

import json
from typing import Optional

from pydantic import Field

from .statement import Money, WireModel


class AutomaticMatchEntry(WireModel):
    """Snapshot of an automatic match at confirmation time."""

    operation_id: str
    transaction_id: Optional[str] = None
    amount: Money
    label: str = ""


class ManualDecisionEntry(WireModel):
    """Snapshot of a manual decision at confirmation time."""

    operation_id: str
    include: bool
    transaction_id: Optional[str] = None
    notes: Optional[str] = None


class ConfirmationComments(WireModel):
    manual: Optional[str] = None
    final: Optional[str] = None


class ConfirmationPayload(WireModel):
    """Immutable body of the confirmation call."""

    statement_id: str
    automatic_matches: tuple[AutomaticMatchEntry, ...] = ()
    manual_decisions: tuple[ManualDecisionEntry, ...] = ()
    comments: ConfirmationComments = Field(default_factory=ConfirmationComments)
    acknowledgement: bool = False

    def to_wire(self) -> dict:
        # Absent values are sent as explicit nulls
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        """Deterministic JSON encoding of the payload."""
        return json.dumps(self.to_wire(), sort_keys=True, separators=(",", ":"))
