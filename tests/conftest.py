"""
Shared fixtures: a ten-operation statement that automatic matching splits
into seven matched and three unmatched operations.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from statement_recon.models import (
    MatchResponse,
    Operation,
    ReconciliationResult,
    ResultStatus,
    Statement,
)
from statement_recon.workflow import ReconciliationWorkflow, SessionStore

from .factories import make_operation, make_statement, split_response


@pytest.fixture
def operations() -> list[Operation]:
    return [make_operation(i) for i in range(1, 11)]


@pytest.fixture
def statement(operations) -> Statement:
    return make_statement(operations)


@pytest.fixture
def match_response(statement) -> MatchResponse:
    return split_response(statement, matched_count=7)


@pytest.fixture
def confirmed_result(statement) -> ReconciliationResult:
    return ReconciliationResult(statement=statement, status=ResultStatus.VALIDATED)


@pytest.fixture
def gateway(statement, match_response, confirmed_result) -> AsyncMock:
    gateway = AsyncMock()
    gateway.import_statement.return_value = statement
    gateway.match_operations.return_value = match_response
    gateway.confirm.return_value = confirmed_result
    return gateway


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock()


@pytest.fixture
def workflow(gateway, notifier) -> ReconciliationWorkflow:
    return ReconciliationWorkflow(gateway, notifier=notifier)


@pytest.fixture
def matched_session(statement, match_response) -> SessionStore:
    session = SessionStore()
    session.load_statement(statement)
    session.apply_match(match_response)
    return session
