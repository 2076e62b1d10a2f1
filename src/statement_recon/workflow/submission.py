"""
Submission coordinator.

Checks the confirmation preconditions, builds the audit payload from session
state and performs the single in-flight confirmation call.
"""

from decimal import Decimal
from typing import Optional
import logging

from ..client.base import ReconciliationGateway
from ..models.confirmation import (
    AutomaticMatchEntry,
    ConfirmationComments,
    ConfirmationPayload,
    ManualDecisionEntry,
)
from ..models.statement import ReconciliationResult
from ..utils.exceptions import (
    SubmissionFailure,
    ValidationFailure,
    ValidationReason,
)
from .session import SessionStore

logger = logging.getLogger(__name__)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def build_payload(session: SessionStore) -> ConfirmationPayload:
    """
    Assemble the confirmation payload from session state.

    Automatic matches are copied as denormalized snapshots so the archived
    record does not depend on the live ledger.

    Args:
        session: Session holding a statement

    Returns:
        Confirmation payload
    """
    if session.statement is None:
        raise ValidationFailure(ValidationReason.STATEMENT_MISSING)

    automatic = tuple(
        AutomaticMatchEntry(
            operation_id=op.id,
            transaction_id=op.matched_transaction_id,
            amount=Decimal(op.amount),
            label=op.label,
        )
        for op in session.automatic_matches
    )
    manual = tuple(
        ManualDecisionEntry(
            operation_id=decision.operation_id,
            include=decision.include,
            transaction_id=decision.transaction_id,
            notes=_blank_to_none(decision.notes),
        )
        for decision in session.ledger
    )

    return ConfirmationPayload(
        statement_id=session.statement.id,
        automatic_matches=automatic,
        manual_decisions=manual,
        comments=ConfirmationComments(
            manual=_blank_to_none(session.manual_comment),
            final=_blank_to_none(session.final_comment),
        ),
        acknowledgement=session.acknowledgement,
    )


class SubmissionCoordinator:
    """Guards and performs the confirmation call for a session."""

    def __init__(self, gateway: ReconciliationGateway):
        self.gateway = gateway
        self._in_flight: set[str] = set()

    @property
    def is_submitting(self) -> bool:
        """Whether any confirmation call is awaiting its response."""
        return bool(self._in_flight)

    def is_submitting_for(self, session: SessionStore) -> bool:
        return session.session_id in self._in_flight

    def check_preconditions(self, session: SessionStore) -> None:
        """
        Verify that the session may be confirmed.

        Raises:
            ValidationFailure: Carrying the first unmet precondition
        """
        if self.is_submitting_for(session):
            raise ValidationFailure(ValidationReason.SUBMISSION_IN_PROGRESS)
        if session.is_closed:
            raise ValidationFailure(ValidationReason.SESSION_CLOSED)
        if not session.acknowledgement:
            raise ValidationFailure(ValidationReason.ACKNOWLEDGEMENT_REQUIRED)
        if session.statement is None:
            raise ValidationFailure(ValidationReason.STATEMENT_MISSING)
        if not session.auto_match_executed:
            raise ValidationFailure(ValidationReason.AUTOMATIC_MATCHING_REQUIRED)
        pending = session.ledger.pending()
        if pending:
            raise ValidationFailure(
                ValidationReason.PENDING_MANUAL_DECISIONS,
                f"{len(pending)} operation(s) need inclusion or a note",
            )

    def can_submit(self, session: SessionStore) -> bool:
        try:
            self.check_preconditions(session)
        except ValidationFailure:
            return False
        return True

    async def submit(
        self, session: SessionStore
    ) -> tuple[ConfirmationPayload, ReconciliationResult]:
        """
        Send the confirmation for a session.

        The session itself is not modified here; callers store the result
        once they know the session is still live.

        Returns:
            Tuple of (payload sent, result received)

        Raises:
            ValidationFailure: If a precondition is not met (no call made)
            SubmissionFailure: If the confirmation call failed
        """
        self.check_preconditions(session)
        payload = build_payload(session)

        self._in_flight.add(session.session_id)
        try:
            logger.info(
                f"Submitting reconciliation for statement {payload.statement_id}: "
                f"{len(payload.automatic_matches)} automatic, "
                f"{len(payload.manual_decisions)} manual"
            )
            result = await self.gateway.confirm(payload)
        except SubmissionFailure:
            raise
        except Exception as e:
            raise SubmissionFailure(f"Confirmation failed: {e}") from e
        finally:
            self._in_flight.discard(session.session_id)

        return payload, result
