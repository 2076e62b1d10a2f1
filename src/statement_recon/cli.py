"""
Command-line interface for the bank statement reconciliation workflow.
"""

from pathlib import Path
from typing import Optional
import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .client.api_client import ReconciliationApiClient
from .config import ReconConfig, generate_default_config, load_config
from .parsers.decision_sheet import DecisionSheet
from .reports.excel_generator import ExcelReportGenerator
from .utils.exceptions import ReconciliationError, ValidationFailure
from .utils.logging_config import level_from_name, setup_logging
from .utils.notifications import NotificationLevel
from .workflow.orchestrator import ReconciliationWorkflow
from .workflow.stages import definitions_with_labels

console = Console()

NOTIFICATION_STYLES = {
    NotificationLevel.SUCCESS: "green",
    NotificationLevel.INFO: "cyan",
    NotificationLevel.WARNING: "yellow",
    NotificationLevel.ERROR: "red",
}


class ConsoleNotifier:
    """Prints workflow notifications to the terminal."""

    def __init__(self, console: Console):
        self.console = console

    def notify(self, message: str, level: NotificationLevel) -> None:
        style = NOTIFICATION_STYLES[level]
        self.console.print(f"[{style}]{message}[/{style}]")


@click.group()
@click.version_option(version=__version__)
def main():
    """Bank Statement Reconciliation Tool."""
    pass


@main.command()
@click.argument("statement_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option(
    "-d",
    "--decisions",
    type=click.Path(exists=True, path_type=Path),
    help="Filled-in manual decision sheet (CSV)",
)
@click.option(
    "--acknowledge",
    is_flag=True,
    help="Attest that the reconciliation is accurate",
)
@click.option("--comment", default="", help="Final comment recorded with the confirmation")
@click.option("--manual-comment", default="", help="Comment on the manual review")
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output Excel file path")
@click.option(
    "--pending-output",
    type=click.Path(path_type=Path),
    default=Path("pending_decisions.csv"),
    show_default=True,
    help="Where to write the decision sheet when decisions are missing",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--dry-run", is_flag=True, help="Import and match, show the summary, but do not confirm"
)
def reconcile(
    statement_file: Path,
    config: Optional[Path],
    decisions: Optional[Path],
    acknowledge: bool,
    comment: str,
    manual_comment: str,
    output: Optional[Path],
    pending_output: Path,
    verbose: bool,
    dry_run: bool,
):
    """
    Import, match and confirm a bank statement.

    STATEMENT_FILE: Path to the bank statement file to import
    """
    recon_config = _setup(config, verbose)

    try:
        exit_code = asyncio.run(
            _reconcile(
                recon_config,
                statement_file,
                decisions=decisions,
                acknowledge=acknowledge,
                comment=comment,
                manual_comment=manual_comment,
                output=output,
                pending_output=pending_output,
                dry_run=dry_run,
            )
        )
    except ReconciliationError as e:
        console.print(f"[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)

    sys.exit(exit_code)


async def _reconcile(
    config: ReconConfig,
    statement_file: Path,
    decisions: Optional[Path],
    acknowledge: bool,
    comment: str,
    manual_comment: str,
    output: Optional[Path],
    pending_output: Path,
    dry_run: bool,
) -> int:
    """Run the workflow end to end; returns the process exit code."""
    async with ReconciliationApiClient(config.api) as client:
        workflow = _build_workflow(config, client)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Importing statement...", total=None)
            await workflow.import_statement(statement_file)
            progress.update(task, completed=True)

            task = progress.add_task("Running automatic matching...", total=None)
            await workflow.run_automatic_matching()
            progress.update(task, completed=True)

        workflow.advance()
        sheet = DecisionSheet(config)
        if decisions is not None:
            outcome = sheet.apply(decisions, workflow.session.ledger)
            if outcome.unknown_operation_ids:
                console.print(
                    f"[yellow]Skipped {len(outcome.unknown_operation_ids)} rows for "
                    f"unknown operations[/yellow]"
                )

        _display_summary(workflow)

        if not workflow.session.ledger.is_complete():
            sheet.export(workflow.session.ledger, pending_output)
            _display_pending(workflow)
            console.print(
                f"\n[yellow]Manual decisions are incomplete. Fill in {pending_output} "
                f"and run again with --decisions.[/yellow]"
            )
            return 2

        workflow.advance()

        if dry_run:
            console.print("\n[yellow]Dry run - reconciliation not confirmed[/yellow]")
            return 0

        workflow.set_manual_comment(manual_comment)
        workflow.set_final_comment(comment)
        if acknowledge:
            workflow.set_acknowledgement(True)

        try:
            result = await workflow.submit()
        except ValidationFailure as e:
            console.print(f"[red]Cannot confirm: {e}[/red]")
            if not acknowledge:
                console.print("Re-run with --acknowledge to attest the reconciliation.")
            return 1

        report_generator = ExcelReportGenerator(config)
        if output is None:
            output = Path(report_generator.default_filename(result))
        session = workflow.session
        operations = list(session.automatic_matches) + [d.operation for d in session.ledger]
        report_path = report_generator.generate_report(
            result=result,
            payload=workflow.last_payload,
            output_path=output,
            operations=operations,
        )
        console.print(f"\n[green]Report generated: {report_path}[/green]")
        return 0


@main.command("export-pending")
@click.argument("statement_file", type=click.Path(exists=True, path_type=Path))
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=Path("pending_decisions.csv"),
    show_default=True,
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def export_pending(
    statement_file: Path, config: Optional[Path], output: Path, verbose: bool
):
    """
    Import and match a statement, then write its manual decision sheet.

    STATEMENT_FILE: Path to the bank statement file to import
    """
    recon_config = _setup(config, verbose)

    async def _export() -> Path:
        async with ReconciliationApiClient(recon_config.api) as client:
            workflow = _build_workflow(recon_config, client)
            await workflow.import_statement(statement_file)
            await workflow.run_automatic_matching()
            _display_summary(workflow)
            return DecisionSheet(recon_config).export(workflow.session.ledger, output)

    try:
        path = asyncio.run(_export())
    except ReconciliationError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(f"\n[green]Decision sheet written: {path}[/green]")


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _setup(config_path: Optional[Path], verbose: bool) -> ReconConfig:
    """Load configuration and configure logging for a command."""
    try:
        recon_config = load_config(config_path)
    except ReconciliationError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    log_level = logging.DEBUG if verbose else level_from_name(recon_config.logging.level)
    log_file = Path(recon_config.logging.file) if recon_config.logging.file else None
    setup_logging(
        log_level,
        log_file=log_file,
        log_format=recon_config.logging.format,
        max_bytes=recon_config.logging.max_bytes,
        backup_count=recon_config.logging.backup_count,
    )
    return recon_config


def _build_workflow(
    config: ReconConfig, client: ReconciliationApiClient
) -> ReconciliationWorkflow:
    return ReconciliationWorkflow(
        client,
        notifier=ConsoleNotifier(console),
        default_acknowledgement=config.workflow.default_acknowledgement,
        stage_definitions=definitions_with_labels(config.workflow.stages),
    )


def _display_summary(workflow: ReconciliationWorkflow) -> None:
    """Display matching and adjudication figures in console."""
    match = workflow.match_summary
    manual = workflow.manual_summary
    totals = workflow.amount_totals
    stage = workflow.stages.current_definition

    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Stage", f"{stage.label} ({workflow.progress}%)")
    table.add_row("Total Operations", str(match.total))
    table.add_row("Matched Automatically", str(match.matched))
    table.add_row("Awaiting Manual Decision", str(match.unmatched))
    table.add_row("Match Rate", f"{match.rate}%")
    table.add_row("Manually Included", str(manual.included))
    table.add_row("Pending", str(manual.pending))
    table.add_row("Credits", f"{totals.credits:,.2f}")
    table.add_row("Debits", f"{totals.debits:,.2f}")
    table.add_row(
        "Balance Gap",
        "-" if totals.balance_gap is None else f"{totals.balance_gap:,.2f}",
    )

    console.print(table)


def _display_pending(workflow: ReconciliationWorkflow) -> None:
    """List operations still lacking a decision."""
    table = Table(title="Pending Manual Decisions")
    table.add_column("Operation")
    table.add_column("Date")
    table.add_column("Label")
    table.add_column("Amount", justify="right")

    pending = workflow.session.ledger.pending()
    for decision in pending[:20]:  # Show first 20
        op = decision.operation
        label = op.label[:40] + "..." if len(op.label) > 40 else op.label
        table.add_row(op.id, str(op.date), label, f"{op.signed_amount:,.2f}")

    console.print(table)

    if len(pending) > 20:
        console.print(f"\n... and {len(pending) - 20} more operations")


if __name__ == "__main__":
    main()
