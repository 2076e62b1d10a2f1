"""
Manual decision ledger.

Holds one adjudication per operation the automatic matcher could not
resolve. Every operation must end up either included or explained by a
note before the reconciliation can be confirmed.
"""

from dataclasses import replace
from typing import Iterable, Iterator, Optional
import logging

from ..models.statement import ManualDecision, Operation

logger = logging.getLogger(__name__)


class ManualDecisionLedger:
    """Ordered mapping from operation id to its manual decision."""

    def __init__(self, decisions: Iterable[ManualDecision] = ()):
        self._decisions: tuple[ManualDecision, ...] = tuple(decisions)

    @classmethod
    def from_unmatched(cls, operations: Iterable[Operation]) -> "ManualDecisionLedger":
        """
        Build a ledger with one pending decision per unmatched operation.

        Args:
            operations: Operations left unmatched by automatic matching

        Returns:
            Ledger with every entry excluded and without notes
        """
        return cls(
            ManualDecision(
                operation=operation,
                include=False,
                transaction_id=operation.matched_transaction_id,
                notes="",
            )
            for operation in operations
        )

    @property
    def entries(self) -> tuple[ManualDecision, ...]:
        return self._decisions

    def __len__(self) -> int:
        return len(self._decisions)

    def __iter__(self) -> Iterator[ManualDecision]:
        return iter(self._decisions)

    def get(self, operation_id: str) -> Optional[ManualDecision]:
        """Return the decision for an operation, or None if unknown."""
        return next(
            (d for d in self._decisions if d.operation_id == operation_id), None
        )

    def toggle_include(self, operation_id: str, include: bool) -> bool:
        """Include or exclude an operation. Returns False for unknown ids."""
        return self._replace(operation_id, include=include)

    def set_transaction(self, operation_id: str, transaction_id: Optional[str]) -> bool:
        """Attach a ledger transaction to an operation; blank clears it."""
        cleaned = (transaction_id or "").strip() or None
        return self._replace(operation_id, transaction_id=cleaned)

    def set_notes(self, operation_id: str, notes: str) -> bool:
        """Record the adjudicator's explanation for an operation."""
        return self._replace(operation_id, notes=notes or "")

    def _replace(self, operation_id: str, **changes) -> bool:
        for index, decision in enumerate(self._decisions):
            if decision.operation_id == operation_id:
                updated = replace(decision, **changes)
                self._decisions = (
                    self._decisions[:index] + (updated,) + self._decisions[index + 1 :]
                )
                return True

        # UI and ledger may briefly disagree after a re-match
        logger.debug(f"Ignoring decision update for unknown operation {operation_id}")
        return False

    def pending(self) -> list[ManualDecision]:
        """Decisions neither included nor explained."""
        return [d for d in self._decisions if d.is_pending]

    def included(self) -> list[ManualDecision]:
        return [d for d in self._decisions if d.include]

    def ignored(self) -> list[ManualDecision]:
        return [d for d in self._decisions if not d.include]

    def is_complete(self) -> bool:
        """True when the ledger is empty or every decision is resolved."""
        return all(d.is_resolved for d in self._decisions)
