"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    RemoteCallError,
    ImportFailure,
    MatchFailure,
    SubmissionFailure,
    ValidationFailure,
    ValidationReason,
    StageTransitionError,
    SessionClosedError,
    ConfigurationError,
    DecisionSheetError,
    ReportGenerationError,
)
from .logging_config import setup_logging
from .notifications import LoggingNotifier, NotificationLevel, Notifier

__all__ = [
    "ReconciliationError",
    "RemoteCallError",
    "ImportFailure",
    "MatchFailure",
    "SubmissionFailure",
    "ValidationFailure",
    "ValidationReason",
    "StageTransitionError",
    "SessionClosedError",
    "ConfigurationError",
    "DecisionSheetError",
    "ReportGenerationError",
    "setup_logging",
    "LoggingNotifier",
    "NotificationLevel",
    "Notifier",
]
