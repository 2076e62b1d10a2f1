"""Contracts of the remote collaborators consumed by the workflow."""

from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence

from ..models.confirmation import ConfirmationPayload
from ..models.statement import MatchResponse, Operation, ReconciliationResult, Statement

# Returns the current bearer token, or None when the user is not signed in.
TokenProvider = Callable[[], Optional[str]]


class ReconciliationGateway(Protocol):
    """Import, automatic-match and confirm calls of the reconciliation service."""

    async def import_statement(self, file_path: Path) -> Statement:
        ...

    async def match_operations(
        self, statement_id: str, operations: Sequence[Operation]
    ) -> MatchResponse:
        ...

    async def confirm(self, payload: ConfirmationPayload) -> ReconciliationResult:
        ...
