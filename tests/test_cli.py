"""
Tests for the command-line interface.
"""

import logging

import pandas as pd
import pytest
from click.testing import CliRunner

from statement_recon import cli
from statement_recon.utils.exceptions import ImportFailure

DECISIONS = """Operation_ID,Include,Transaction_ID,Notes
op8,yes,TX-8,
op9,yes,,
op10,no,,Reversed by the bank
"""


class FakeClient:
    """Async context manager handing out the mocked gateway."""

    def __init__(self, gateway):
        self.gateway = gateway

    async def __aenter__(self):
        return self.gateway

    async def __aexit__(self, *exc_info):
        return None


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("statement_recon").handlers = []


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def fake_api(monkeypatch, gateway):
    monkeypatch.setattr(
        cli, "ReconciliationApiClient", lambda *args, **kwargs: FakeClient(gateway)
    )
    return gateway


@pytest.fixture
def statement_file(tmp_path):
    path = tmp_path / "january.ofx"
    path.write_text("OFXHEADER:100")
    return path


class TestReconcileCommand:
    """Test suite for the reconcile command."""

    def test_confirms_with_decisions(self, runner, fake_api, statement_file, tmp_path):
        decisions = tmp_path / "decisions.csv"
        decisions.write_text(DECISIONS)
        report = tmp_path / "report.xlsx"

        result = runner.invoke(
            cli.main,
            [
                "reconcile",
                str(statement_file),
                "--decisions",
                str(decisions),
                "--acknowledge",
                "--comment",
                "Signed off",
                "-o",
                str(report),
            ],
        )

        assert result.exit_code == 0, result.output
        assert report.exists()
        payload = fake_api.confirm.await_args.args[0]
        assert payload.acknowledgement is True
        assert payload.comments.final == "Signed off"
        assert [d.include for d in payload.manual_decisions] == [True, True, False]

    def test_missing_decisions_writes_pending_sheet(
        self, runner, fake_api, statement_file, tmp_path
    ):
        pending = tmp_path / "pending.csv"

        result = runner.invoke(
            cli.main,
            ["reconcile", str(statement_file), "--pending-output", str(pending)],
        )

        assert result.exit_code == 2, result.output
        df = pd.read_csv(pending, dtype=str)
        assert df["Operation_ID"].tolist() == ["op8", "op9", "op10"]
        fake_api.confirm.assert_not_awaited()

    def test_requires_acknowledgement(self, runner, fake_api, statement_file, tmp_path):
        decisions = tmp_path / "decisions.csv"
        decisions.write_text(DECISIONS)

        result = runner.invoke(
            cli.main, ["reconcile", str(statement_file), "--decisions", str(decisions)]
        )

        assert result.exit_code == 1
        assert "--acknowledge" in result.output
        fake_api.confirm.assert_not_awaited()

    def test_dry_run(self, runner, fake_api, statement_file, tmp_path):
        decisions = tmp_path / "decisions.csv"
        decisions.write_text(DECISIONS)

        result = runner.invoke(
            cli.main,
            [
                "reconcile",
                str(statement_file),
                "-d",
                str(decisions),
                "--acknowledge",
                "--dry-run",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Dry run" in result.output
        fake_api.confirm.assert_not_awaited()

    def test_remote_failure_exits_with_error(
        self, runner, fake_api, statement_file
    ):
        fake_api.import_statement.side_effect = ImportFailure("boom", status_code=503)

        result = runner.invoke(cli.main, ["reconcile", str(statement_file)])

        assert result.exit_code == 1
        assert "Error: boom" in result.output


def test_export_pending(runner, fake_api, statement_file, tmp_path):
    output = tmp_path / "sheet.csv"

    result = runner.invoke(
        cli.main, ["export-pending", str(statement_file), "-o", str(output)]
    )

    assert result.exit_code == 0, result.output
    assert len(pd.read_csv(output)) == 3


def test_init_config(runner, tmp_path):
    output = tmp_path / "config.yaml"

    result = runner.invoke(cli.main, ["init-config", "-o", str(output)])

    assert result.exit_code == 0
    assert output.exists()
    assert "Configuration file generated" in result.output
