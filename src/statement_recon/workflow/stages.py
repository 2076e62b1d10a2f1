"""
Stage controller for the four-stage reconciliation workflow.

Import -> Automatic -> Manual -> Confirmation. Moving forward requires the
current stage's exit condition; moving back to a stage already reached is
always allowed.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Optional
import logging

from ..utils.exceptions import StageTransitionError
from .session import SessionStore

logger = logging.getLogger(__name__)


class Stage(IntEnum):
    """Workflow stages in order."""

    IMPORT = 0
    AUTOMATIC = 1
    MANUAL = 2
    CONFIRMATION = 3


@dataclass(frozen=True)
class StageDefinition:
    """Display metadata for a stage."""

    stage: Stage
    label: str
    description: str

    @property
    def key(self) -> str:
        return self.stage.name.lower()


DEFAULT_STAGE_DEFINITIONS: tuple[StageDefinition, ...] = (
    StageDefinition(
        Stage.IMPORT, "Statement import", "Load the bank statement to reconcile."
    ),
    StageDefinition(
        Stage.AUTOMATIC,
        "Automatic matching",
        "Match detected operations against ledger transactions.",
    ),
    StageDefinition(
        Stage.MANUAL, "Manual review", "Include or explain every remaining operation."
    ),
    StageDefinition(
        Stage.CONFIRMATION, "Confirmation", "Confirm and archive the reconciliation."
    ),
)


def definitions_with_labels(labels: Mapping[str, Any]) -> tuple[StageDefinition, ...]:
    """
    Apply configured display text over the default stage definitions.

    Args:
        labels: Mapping of stage key ("import", "manual", ...) to an object
            with ``label`` and ``description`` attributes

    Returns:
        Stage definitions in workflow order
    """
    definitions = []
    for default in DEFAULT_STAGE_DEFINITIONS:
        override = labels.get(default.key)
        if override is None:
            definitions.append(default)
            continue
        definitions.append(
            StageDefinition(
                default.stage,
                override.label or default.label,
                override.description or default.description,
            )
        )
    return tuple(definitions)


class StageController:
    """Finite-state machine gating the active stage from session contents."""

    def __init__(
        self,
        session: SessionStore,
        definitions: Optional[tuple[StageDefinition, ...]] = None,
    ):
        self.session = session
        self.definitions = definitions or DEFAULT_STAGE_DEFINITIONS
        self.current = Stage.IMPORT

    @property
    def stage_count(self) -> int:
        return len(self.definitions)

    @property
    def current_definition(self) -> StageDefinition:
        return self.definitions[int(self.current)]

    def _guard(self, stage: Stage) -> Optional[str]:
        """Return why a stage cannot be entered, or None when it can."""
        session = self.session
        if stage == Stage.IMPORT:
            return None
        if stage == Stage.AUTOMATIC:
            return None if session.statement is not None else "no statement imported"
        if stage == Stage.MANUAL:
            if not session.auto_match_executed:
                return "automatic matching has not been run"
            return None
        if not session.auto_match_executed:
            return "automatic matching has not been run"
        if not session.ledger.is_complete():
            return "pending manual decisions"
        return None

    def can_enter(self, stage: Stage) -> bool:
        """Whether navigation to a stage is permitted right now."""
        if stage < self.current:
            return True
        return self._guard(stage) is None

    def advance(self) -> Stage:
        """
        Move to the next stage.

        Returns:
            The new current stage

        Raises:
            StageTransitionError: If the exit condition of the current stage
                does not hold; the current stage is left unchanged
        """
        if self.current == Stage.CONFIRMATION:
            raise StageTransitionError("Confirmation is the last stage")

        target = Stage(self.current + 1)
        reason = self._guard(target)
        if reason is not None:
            raise StageTransitionError(f"Cannot enter {target.name.lower()}: {reason}")

        self.current = target
        logger.debug(f"Advanced to stage {target.name}")
        return target

    def retreat(self) -> bool:
        """Move back one stage; not possible from the first stage."""
        if self.current == Stage.IMPORT:
            return False
        self.current = Stage(self.current - 1)
        logger.debug(f"Returned to stage {self.current.name}")
        return True

    def jump_to(self, stage: Stage) -> bool:
        """Move to any enterable stage; rejected jumps change nothing."""
        if not self.can_enter(stage):
            logger.debug(f"Rejected jump to stage {stage.name}")
            return False
        self.current = stage
        return True

    def realign(self) -> Stage:
        """
        Step back to the furthest stage whose guard still holds.

        Re-running automatic matching rebuilds the ledger, which can leave the
        current stage unreachable.
        """
        while self.current > Stage.IMPORT and self._guard(self.current) is not None:
            self.current = Stage(self.current - 1)
        return self.current

    def reset_for_new_statement(self) -> None:
        """A freshly imported statement is reviewed from automatic matching."""
        self.current = Stage.AUTOMATIC

    def is_active(self, stage: Stage) -> bool:
        return stage == self.current

    def is_completed(self, stage: Stage) -> bool:
        """Completion markers shown on the stage indicator."""
        session = self.session
        if stage == Stage.IMPORT:
            return self.current > Stage.IMPORT and session.statement is not None
        if stage == Stage.AUTOMATIC:
            return self.current > Stage.AUTOMATIC and session.auto_match_executed
        if stage == Stage.MANUAL:
            return self.current > Stage.MANUAL and session.ledger.is_complete()
        return session.result is not None
