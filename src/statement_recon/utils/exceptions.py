"""Custom exceptions for the reconciliation workflow."""

from enum import Enum
from typing import Any, Optional


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class RemoteCallError(ReconciliationError):
    """Error returned by (or while reaching) the reconciliation API."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        details: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ImportFailure(RemoteCallError):
    """The statement could not be imported."""

    pass


class MatchFailure(RemoteCallError):
    """Automatic matching could not be run or returned an invalid result."""

    pass


class SubmissionFailure(RemoteCallError):
    """The confirmation call was rejected or timed out."""

    pass


class ValidationReason(Enum):
    """Unmet submission preconditions, in the order they are checked."""

    SUBMISSION_IN_PROGRESS = "submission already in progress"
    SESSION_CLOSED = "reconciliation already confirmed"
    ACKNOWLEDGEMENT_REQUIRED = "acknowledgement required"
    STATEMENT_MISSING = "no statement imported"
    AUTOMATIC_MATCHING_REQUIRED = "automatic matching has not been run"
    PENDING_MANUAL_DECISIONS = "pending manual decisions"


class ValidationFailure(ReconciliationError):
    """A submission precondition is not met. Never involves a network call."""

    def __init__(self, reason: ValidationReason, detail: Optional[str] = None):
        message = reason.value if detail is None else f"{reason.value}: {detail}"
        super().__init__(message)
        self.reason = reason
        self.detail = detail


class StageTransitionError(ReconciliationError):
    """The current stage's exit condition does not hold."""

    pass


class SessionClosedError(ReconciliationError):
    """Mutation attempted on a confirmed or abandoned session."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass


class DecisionSheetError(ReconciliationError):
    """Error reading or writing a manual decision sheet."""

    pass


class ReportGenerationError(ReconciliationError):
    """Error generating Excel report."""

    pass
