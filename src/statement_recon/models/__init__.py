"""Data models for statement reconciliation."""

from .confirmation import (
    AutomaticMatchEntry,
    ConfirmationComments,
    ConfirmationPayload,
    ManualDecisionEntry,
)
from .statement import (
    ManualDecision,
    MatchResponse,
    MatchStats,
    Operation,
    OperationDirection,
    OperationStatus,
    OperationSuggestion,
    ReconciliationResult,
    ResultStatus,
    ResultSummary,
    Statement,
)

__all__ = [
    "AutomaticMatchEntry",
    "ConfirmationComments",
    "ConfirmationPayload",
    "ManualDecision",
    "ManualDecisionEntry",
    "MatchResponse",
    "MatchStats",
    "Operation",
    "OperationDirection",
    "OperationStatus",
    "OperationSuggestion",
    "ReconciliationResult",
    "ResultStatus",
    "ResultSummary",
    "Statement",
]
