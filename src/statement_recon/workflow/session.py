"""
Session store for one reconciliation.

The store owns the imported statement, the automatic-match set and the
manual decision ledger. It performs no derivation; aggregation and stage
gating read from it.
"""

from typing import Optional
from uuid import uuid4
import logging

from ..models.statement import (
    MatchResponse,
    Operation,
    ReconciliationResult,
    Statement,
)
from ..utils.exceptions import MatchFailure, SessionClosedError
from .ledger import ManualDecisionLedger

logger = logging.getLogger(__name__)


class SessionStore:
    """State of a single reconciliation session."""

    def __init__(self, default_acknowledgement: bool = False):
        self.session_id = str(uuid4())
        self.default_acknowledgement = default_acknowledgement

        self.statement: Optional[Statement] = None
        self.automatic_matches: tuple[Operation, ...] = ()
        self.unmatched_operations: tuple[Operation, ...] = ()
        self.ledger = ManualDecisionLedger()
        self.auto_match_executed = False

        self.manual_comment = ""
        self.final_comment = ""
        self.acknowledgement = default_acknowledgement

        self.result: Optional[ReconciliationResult] = None
        self.disposed = False

    @property
    def is_closed(self) -> bool:
        """A confirmed or abandoned session accepts no further mutation."""
        return self.result is not None or self.disposed

    def _ensure_open(self) -> None:
        if self.result is not None:
            raise SessionClosedError(
                f"Session {self.session_id} is confirmed and read-only"
            )
        if self.disposed:
            raise SessionClosedError(f"Session {self.session_id} was abandoned")

    def load_statement(self, statement: Statement) -> None:
        """
        Install a freshly imported statement.

        Loading a statement is a session reset: automatic matches, manual
        decisions and comments from any previous statement are discarded.

        Args:
            statement: Statement returned by the import call
        """
        self._ensure_open()

        self.statement = statement
        self.automatic_matches = ()
        self.unmatched_operations = tuple(statement.operations or ())
        self.ledger = ManualDecisionLedger()
        self.auto_match_executed = False
        self.manual_comment = ""
        self.final_comment = ""
        self.acknowledgement = self.default_acknowledgement

        logger.info(
            f"Session {self.session_id}: loaded statement {statement.id} "
            f"with {len(self.unmatched_operations)} operations"
        )

    def apply_match(self, response: MatchResponse) -> None:
        """
        Replace the automatic-match set and rebuild the manual ledger.

        The response is validated before anything is touched, so a rejected
        response leaves the session exactly as it was.

        Args:
            response: Response of the automatic matching call

        Raises:
            MatchFailure: If an operation is both matched and unmatched
        """
        self._ensure_open()

        matched_ids = [op.id for op in response.matched_operations]
        unmatched_ids = [op.id for op in response.unmatched_operations]
        overlap = set(matched_ids) & set(unmatched_ids)
        if overlap:
            raise MatchFailure(
                "Matching service returned operations both matched and unmatched: "
                + ", ".join(sorted(overlap))
            )
        if len(set(matched_ids)) != len(matched_ids) or len(set(unmatched_ids)) != len(
            unmatched_ids
        ):
            raise MatchFailure("Matching service returned duplicated operations")

        if response.statement is not None:
            self.statement = response.statement
        self.automatic_matches = tuple(response.matched_operations)
        self.unmatched_operations = tuple(response.unmatched_operations)
        self.ledger = ManualDecisionLedger.from_unmatched(response.unmatched_operations)
        self.auto_match_executed = True

        logger.info(
            f"Session {self.session_id}: {len(self.automatic_matches)} matched, "
            f"{len(self.ledger)} awaiting manual decision"
        )

    def set_manual_comment(self, text: str) -> None:
        self._ensure_open()
        self.manual_comment = text or ""

    def set_final_comment(self, text: str) -> None:
        self._ensure_open()
        self.final_comment = text or ""

    def set_acknowledgement(self, value: bool) -> None:
        self._ensure_open()
        self.acknowledgement = bool(value)

    def toggle_include(self, operation_id: str, include: bool) -> bool:
        self._ensure_open()
        return self.ledger.toggle_include(operation_id, include)

    def set_transaction(self, operation_id: str, transaction_id: Optional[str]) -> bool:
        self._ensure_open()
        return self.ledger.set_transaction(operation_id, transaction_id)

    def set_notes(self, operation_id: str, notes: str) -> bool:
        self._ensure_open()
        return self.ledger.set_notes(operation_id, notes)

    def set_result(self, result: ReconciliationResult) -> None:
        """Store the confirmation record; the session becomes read-only."""
        self._ensure_open()
        self.result = result
        logger.info(f"Session {self.session_id}: reconciliation confirmed")

    def dispose(self) -> None:
        """Mark the session abandoned so late responses are discarded."""
        self.disposed = True
