"""Reconciliation workflow: session, stages, ledger, aggregation and submission."""

from .ledger import ManualDecisionLedger
from .orchestrator import ReconciliationWorkflow
from .session import SessionStore
from .stages import (
    DEFAULT_STAGE_DEFINITIONS,
    Stage,
    StageController,
    StageDefinition,
    definitions_with_labels,
)
from .submission import ConfirmationPayload, SubmissionCoordinator, build_payload

__all__ = [
    "ManualDecisionLedger",
    "ReconciliationWorkflow",
    "SessionStore",
    "DEFAULT_STAGE_DEFINITIONS",
    "Stage",
    "StageController",
    "StageDefinition",
    "definitions_with_labels",
    "ConfirmationPayload",
    "SubmissionCoordinator",
    "build_payload",
]
