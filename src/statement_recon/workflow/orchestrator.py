"""
Reconciliation workflow facade.

Wires the session store, stage controller, manual ledger and submission
coordinator to the remote gateway. Every import opens a new session; each
remote action runs at most once at a time per session, and its response is
applied only to the session it was started for.
"""

from pathlib import Path
from typing import Optional
import logging

from ..client.base import ReconciliationGateway
from ..models.confirmation import ConfirmationPayload
from ..models.statement import MatchResponse, ReconciliationResult, Statement
from ..utils.exceptions import (
    ImportFailure,
    MatchFailure,
    StageTransitionError,
    SubmissionFailure,
    ValidationFailure,
    ValidationReason,
)
from ..utils.notifications import LoggingNotifier, NotificationLevel, Notifier
from . import aggregation
from .session import SessionStore
from .stages import Stage, StageController, StageDefinition
from .submission import SubmissionCoordinator

logger = logging.getLogger(__name__)

IMPORT_ERROR_MESSAGE = (
    "The bank statement could not be imported right now. Please try again later."
)
MATCH_ERROR_MESSAGE = "Automatic matching could not be run. Try again in a few moments."
SUBMISSION_ERROR_MESSAGE = "Final confirmation failed. No data was changed."


class ReconciliationWorkflow:
    """Four-stage reconciliation of one bank statement at a time."""

    def __init__(
        self,
        gateway: ReconciliationGateway,
        notifier: Optional[Notifier] = None,
        default_acknowledgement: bool = False,
        stage_definitions: Optional[tuple[StageDefinition, ...]] = None,
    ):
        self.gateway = gateway
        self.notifier = notifier or LoggingNotifier()
        self.default_acknowledgement = default_acknowledgement
        self.stage_definitions = stage_definitions

        self.submission = SubmissionCoordinator(gateway)
        # Session ids with a call of that kind awaiting its response
        self._importing: set[str] = set()
        self._matching: set[str] = set()

        self.import_error: Optional[str] = None
        self.match_error: Optional[str] = None
        self.submission_error: Optional[str] = None
        self.last_payload: Optional[ConfirmationPayload] = None

        self._start_session()

    def _start_session(self) -> None:
        self.session = SessionStore(default_acknowledgement=self.default_acknowledgement)
        self.stages = StageController(self.session, self.stage_definitions)
        logger.debug(f"Started reconciliation session {self.session.session_id}")

    def _is_live(self, session: SessionStore) -> bool:
        return session is self.session and not session.disposed

    @property
    def is_importing(self) -> bool:
        return self.session.session_id in self._importing

    @property
    def is_matching(self) -> bool:
        return self.session.session_id in self._matching

    @property
    def is_submitting(self) -> bool:
        return self.submission.is_submitting_for(self.session)

    @property
    def result(self) -> Optional[ReconciliationResult]:
        return self.session.result

    # Remote actions

    async def import_statement(self, file_path: Path) -> Optional[Statement]:
        """
        Import a bank statement into a new session.

        Args:
            file_path: Statement file to upload

        Returns:
            The imported statement, or None if an import is already running
            or the session was abandoned meanwhile

        Raises:
            ImportFailure: If the import call failed; the session is unchanged
        """
        session = self.session
        if session.session_id in self._importing:
            logger.debug("Import already in progress, ignoring request")
            return None

        self._importing.add(session.session_id)
        self.import_error = None
        self.match_error = None
        self.submission_error = None
        try:
            statement = await self.gateway.import_statement(file_path)
        except ImportFailure as e:
            if self._is_live(session):
                self._report_failure("import", e, IMPORT_ERROR_MESSAGE)
                self.import_error = IMPORT_ERROR_MESSAGE
            raise
        finally:
            self._importing.discard(session.session_id)

        if not self._is_live(session):
            logger.info(
                f"Discarding import response for abandoned session {session.session_id}"
            )
            return None

        # Calls still pending for the previous statement keep its session
        # and can no longer reach the new one.
        self._start_session()
        self.session.load_statement(statement)
        self.stages.reset_for_new_statement()
        self.last_payload = None

        self.notifier.notify(
            "Bank statement imported successfully.", NotificationLevel.SUCCESS
        )
        return statement

    async def run_automatic_matching(self) -> Optional[MatchResponse]:
        """
        Run automatic matching for the current statement.

        Returns:
            The match response, or None when there is no statement, matching
            is already running or the session was replaced meanwhile

        Raises:
            MatchFailure: If the call failed or returned an inconsistent
                partition; the session is unchanged
        """
        session = self.session
        statement = session.statement
        if statement is None:
            logger.debug("No statement to match")
            return None
        if session.session_id in self._matching:
            logger.debug("Automatic matching already in progress, ignoring request")
            return None

        self._matching.add(session.session_id)
        self.match_error = None
        try:
            response = await self.gateway.match_operations(
                statement.id, list(statement.operations or [])
            )
            if self._is_live(session):
                session.apply_match(response)
        except MatchFailure as e:
            if self._is_live(session):
                self._report_failure("automatic matching", e, MATCH_ERROR_MESSAGE)
                self.match_error = MATCH_ERROR_MESSAGE
            raise
        finally:
            self._matching.discard(session.session_id)

        if not self._is_live(session):
            logger.info(
                f"Discarding match response for replaced session {session.session_id}"
            )
            return None

        self.stages.realign()
        self.notifier.notify("Automatic matching complete.", NotificationLevel.SUCCESS)
        return response

    async def submit(self) -> ReconciliationResult:
        """
        Confirm the reconciliation.

        Returns:
            The confirmation record; the session becomes read-only

        Raises:
            ValidationFailure: If a precondition is unmet (no call made)
            SubmissionFailure: If the call failed; the session is unchanged
                and the same payload can be submitted again
        """
        session = self.session
        try:
            payload, result = await self.submission.submit(session)
        except ValidationFailure as e:
            if e.reason == ValidationReason.ACKNOWLEDGEMENT_REQUIRED:
                self.notifier.notify(
                    "You must attest to the accuracy of the reconciliation before confirming.",
                    NotificationLevel.WARNING,
                )
            else:
                self.notifier.notify(str(e), NotificationLevel.WARNING)
            raise
        except SubmissionFailure as e:
            if self._is_live(session):
                self._report_failure("confirmation", e, SUBMISSION_ERROR_MESSAGE)
                self.submission_error = SUBMISSION_ERROR_MESSAGE
            raise

        if not self._is_live(session):
            logger.info(
                f"Discarding confirmation for replaced session {session.session_id}"
            )
            return result

        self.submission_error = None
        self.last_payload = payload
        if result.summary is None:
            summary = aggregation.result_summary(session)
            result = result.model_copy(update={"summary": summary})
        session.set_result(result)
        self.notifier.notify(
            "Bank reconciliation confirmed and archived.", NotificationLevel.SUCCESS
        )
        return result

    def _report_failure(self, action: str, error: Exception, message: str) -> None:
        logger.error(f"{action.capitalize()} failed: {error}")
        self.notifier.notify(message, NotificationLevel.ERROR)

    def abandon(self) -> None:
        """Dispose the live session; pending responses will be ignored."""
        logger.info(f"Abandoning session {self.session.session_id}")
        self.session.dispose()
        self._start_session()

    # Navigation

    def can_enter(self, stage: Stage) -> bool:
        return self.stages.can_enter(stage)

    def advance(self) -> bool:
        """Move to the next stage, warning the user when it is not reachable."""
        try:
            self.stages.advance()
        except StageTransitionError as e:
            self.notifier.notify(str(e), NotificationLevel.WARNING)
            return False
        return True

    def retreat(self) -> bool:
        return self.stages.retreat()

    def jump_to(self, stage: Stage) -> bool:
        return self.stages.jump_to(stage)

    # Adjudication

    def toggle_include(self, operation_id: str, include: bool) -> bool:
        changed = self.session.toggle_include(operation_id, include)
        self.stages.realign()
        return changed

    def set_transaction(self, operation_id: str, transaction_id: Optional[str]) -> bool:
        return self.session.set_transaction(operation_id, transaction_id)

    def set_notes(self, operation_id: str, notes: str) -> bool:
        changed = self.session.set_notes(operation_id, notes)
        self.stages.realign()
        return changed

    def set_manual_comment(self, text: str) -> None:
        self.session.set_manual_comment(text)

    def set_final_comment(self, text: str) -> None:
        self.session.set_final_comment(text)

    def set_acknowledgement(self, value: bool) -> None:
        self.session.set_acknowledgement(value)

    # Derived views

    @property
    def match_summary(self) -> aggregation.MatchSummary:
        return aggregation.match_summary(self.session)

    @property
    def manual_summary(self) -> aggregation.ManualSummary:
        return aggregation.manual_summary(self.session.ledger)

    @property
    def progress(self) -> int:
        return aggregation.progress(int(self.stages.current), self.stages.stage_count)

    @property
    def confirmation_summary(self) -> aggregation.ConfirmationSummary:
        return aggregation.confirmation_summary(self.session)

    @property
    def amount_totals(self) -> aggregation.AmountTotals:
        return aggregation.amount_totals(self.session)

    @property
    def can_submit(self) -> bool:
        return self.submission.can_submit(self.session)
