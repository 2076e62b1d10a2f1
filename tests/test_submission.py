"""
Tests for confirmation payloads and the submission coordinator.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from statement_recon.utils.exceptions import (
    SubmissionFailure,
    ValidationFailure,
    ValidationReason,
)
from statement_recon.workflow import SessionStore, SubmissionCoordinator, build_payload


@pytest.fixture
def resolved_session(matched_session) -> SessionStore:
    matched_session.toggle_include("op8", True)
    matched_session.set_transaction("op8", "TX-8")
    matched_session.toggle_include("op9", True)
    matched_session.set_notes("op10", "  Reversed by the bank  ")
    matched_session.set_manual_comment("  ")
    matched_session.set_final_comment(" All good ")
    matched_session.set_acknowledgement(True)
    return matched_session


class TestBuildPayload:
    """Payload assembly from session state."""

    def test_wire_shape(self, resolved_session):
        wire = build_payload(resolved_session).to_wire()

        assert wire["statementId"] == "st-1"
        assert wire["acknowledgement"] is True
        assert len(wire["automaticMatches"]) == 7
        assert wire["automaticMatches"][0] == {
            "operationId": "op1",
            "transactionId": "tx-op1",
            "amount": 100.0,
            "label": "Payment 1",
        }
        assert wire["manualDecisions"] == [
            {"operationId": "op8", "include": True, "transactionId": "TX-8", "notes": None},
            {"operationId": "op9", "include": True, "transactionId": None, "notes": None},
            {
                "operationId": "op10",
                "include": False,
                "transactionId": None,
                "notes": "Reversed by the bank",
            },
        ]
        assert wire["comments"] == {"manual": None, "final": "All good"}

    def test_json_is_deterministic(self, resolved_session):
        first = build_payload(resolved_session).to_json()
        second = build_payload(resolved_session).to_json()

        assert first == second
        assert json.loads(first)["statementId"] == "st-1"

    def test_snapshots_do_not_follow_ledger(self, resolved_session):
        payload = build_payload(resolved_session)

        resolved_session.toggle_include("op9", False)

        assert payload.manual_decisions[1].include is True

    def test_requires_statement(self):
        with pytest.raises(ValidationFailure) as exc_info:
            build_payload(SessionStore())

        assert exc_info.value.reason == ValidationReason.STATEMENT_MISSING


class TestPreconditions:
    """Order and effect of submission preconditions."""

    @pytest.fixture
    def coordinator(self) -> SubmissionCoordinator:
        return SubmissionCoordinator(AsyncMock())

    def reason(self, coordinator, session) -> ValidationReason:
        with pytest.raises(ValidationFailure) as exc_info:
            coordinator.check_preconditions(session)
        return exc_info.value.reason

    def test_acknowledgement_checked_before_statement(self, coordinator):
        assert self.reason(coordinator, SessionStore()) == (
            ValidationReason.ACKNOWLEDGEMENT_REQUIRED
        )

    def test_statement_required(self, coordinator):
        session = SessionStore(default_acknowledgement=True)

        assert self.reason(coordinator, session) == ValidationReason.STATEMENT_MISSING

    def test_matching_required(self, coordinator, statement):
        session = SessionStore(default_acknowledgement=True)
        session.load_statement(statement)

        assert self.reason(coordinator, session) == (
            ValidationReason.AUTOMATIC_MATCHING_REQUIRED
        )

    def test_pending_decisions_reported_with_count(self, coordinator, matched_session):
        matched_session.set_acknowledgement(True)
        matched_session.toggle_include("op8", True)

        with pytest.raises(ValidationFailure, match="2 operation"):
            coordinator.check_preconditions(matched_session)

    @pytest.mark.asyncio
    async def test_in_progress_checked_first(self, resolved_session, confirmed_result):
        release = asyncio.Event()

        async def slow_confirm(payload):
            await release.wait()
            return confirmed_result

        coordinator = SubmissionCoordinator(AsyncMock(confirm=slow_confirm))
        task = asyncio.create_task(coordinator.submit(resolved_session))
        await asyncio.sleep(0)

        assert coordinator.is_submitting_for(resolved_session)
        assert self.reason(coordinator, resolved_session) == (
            ValidationReason.SUBMISSION_IN_PROGRESS
        )
        assert not coordinator.can_submit(resolved_session)
        # A pending call for one session does not block another
        assert self.reason(coordinator, SessionStore()) == (
            ValidationReason.ACKNOWLEDGEMENT_REQUIRED
        )

        release.set()
        await task
        assert not coordinator.is_submitting

    def test_closed_session(self, coordinator, resolved_session, confirmed_result):
        resolved_session.set_result(confirmed_result)

        assert self.reason(coordinator, resolved_session) == ValidationReason.SESSION_CLOSED

    def test_ready(self, coordinator, resolved_session):
        assert coordinator.can_submit(resolved_session)


class TestSubmit:
    """The confirmation call itself."""

    @pytest.mark.asyncio
    async def test_no_call_without_acknowledgement(self, matched_session):
        gateway = AsyncMock()
        coordinator = SubmissionCoordinator(gateway)

        with pytest.raises(ValidationFailure):
            await coordinator.submit(matched_session)

        gateway.confirm.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_returns_payload_and_result(self, resolved_session, confirmed_result):
        gateway = AsyncMock()
        gateway.confirm.return_value = confirmed_result
        coordinator = SubmissionCoordinator(gateway)

        payload, result = await coordinator.submit(resolved_session)

        assert result is confirmed_result
        gateway.confirm.assert_awaited_once_with(payload)
        assert not coordinator.is_submitting
        # The coordinator leaves storing the result to its caller
        assert resolved_session.result is None

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, resolved_session):
        gateway = AsyncMock()
        gateway.confirm.side_effect = RuntimeError("connection reset")
        coordinator = SubmissionCoordinator(gateway)

        with pytest.raises(SubmissionFailure, match="connection reset"):
            await coordinator.submit(resolved_session)

        assert not coordinator.is_submitting
