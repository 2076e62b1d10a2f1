"""
Excel report generator for confirmed reconciliations.
Creates a multi-sheet workbook archiving what was confirmed and why.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
import logging

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..config import ReconConfig
from ..models.statement import Operation, ReconciliationResult
from ..utils.exceptions import ReportGenerationError
from ..models.confirmation import ConfirmationPayload

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
IGNORED_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)


class ExcelReportGenerator:
    """Generates Excel confirmation reports with multiple sheets."""

    def __init__(self, config: ReconConfig):
        """
        Initialize the report generator.

        Args:
            config: Application configuration
        """
        self.config = config
        self.output_config = config.output.excel
        self.sheet_config = config.output.sheets

    def default_filename(self, result: ReconciliationResult) -> str:
        """Build the report filename from the configured template."""
        now = datetime.now()
        template = self.output_config.filename_template
        if not self.output_config.include_timestamp:
            template = template.replace("_{date}", "").replace("_{time}", "")
        return template.format(
            statement_id=result.statement.id,
            date=now.strftime("%Y%m%d"),
            time=now.strftime("%H%M%S"),
        )

    def generate_report(
        self,
        result: ReconciliationResult,
        payload: ConfirmationPayload,
        output_path: Path,
        operations: Optional[list[Operation]] = None,
    ) -> Path:
        """
        Generate the complete confirmation report.

        Args:
            result: Confirmation record returned by the service
            payload: Payload that was submitted
            output_path: Path for output file
            operations: Session operations used to describe entries the
                service did not echo back

        Returns:
            Path to generated report

        Raises:
            ReportGenerationError: If the workbook cannot be written
        """
        logger.info(f"Generating Excel report: {output_path}")

        wb = Workbook()

        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        lookup = _index(
            list(operations or [])
            + result.matched_operations
            + result.manual_decisions
            + result.unmatched_operations
        )

        if self.sheet_config.summary.enabled:
            self._create_summary_sheet(wb, result)
        if self.sheet_config.automatic_matches.enabled:
            self._create_automatic_sheet(wb, payload, lookup)
        if self.sheet_config.manual_decisions.enabled:
            self._create_manual_sheet(wb, payload, lookup)
        if self.sheet_config.audit_trail.enabled:
            self._create_audit_trail_sheet(wb, result, payload)

        if not wb.worksheets:
            raise ReportGenerationError("All report sheets are disabled")

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except OSError as e:
            raise ReportGenerationError(f"Failed to save report: {e}") from e

        logger.info(f"Report saved: {output_path}")
        return output_path

    def _write_headers(self, ws: Worksheet, headers: list[str], row: int = 1) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER
            cell.alignment = Alignment(horizontal="center")

    def _create_summary_sheet(self, wb: Workbook, result: ReconciliationResult) -> None:
        """Create the summary sheet with key figures."""
        ws = wb.create_sheet(self.sheet_config.summary.name)
        statement = result.statement
        summary = result.summary

        ws["A1"] = "Bank Reconciliation Confirmation"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        ws["A3"] = "Statement"
        ws["A3"].font = Font(bold=True)
        statement_info = [
            ("Statement ID:", statement.id),
            ("Reference:", statement.reference or "-"),
            ("Account:", statement.account_name or statement.account_id or "-"),
            ("Period:", f"{statement.start_date or '-'} to {statement.end_date or '-'}"),
            ("Currency:", statement.currency or "-"),
            ("Declared Balance:", _money(statement.declared_balance)),
        ]
        row = 4
        for label, value in statement_info:
            ws[f"A{row}"] = label
            ws[f"B{row}"] = str(value)
            row += 1

        row += 1
        ws[f"A{row}"] = "Outcome"
        ws[f"A{row}"].font = Font(bold=True)
        row += 1

        outcome = [("Status:", result.status.value)]
        if summary is not None:
            outcome += [
                ("Total Operations:", summary.total_operations),
                ("Matched Automatically:", summary.matched_automatically),
                ("Included Manually:", summary.matched_manually),
                ("Ignored:", summary.ignored),
                ("Remaining:", summary.remaining),
                ("Balance Gap:", _money(summary.balance_gap)),
            ]
        for label, value in outcome:
            ws[f"A{row}"] = label
            ws[f"B{row}"] = value
            row += 1

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 40

    def _create_automatic_sheet(
        self,
        wb: Workbook,
        payload: ConfirmationPayload,
        operations: dict[str, Operation],
    ) -> None:
        """Create the automatic matches sheet from the submitted snapshot."""
        ws = wb.create_sheet(self.sheet_config.automatic_matches.name)
        self._write_headers(
            ws, ["Operation ID", "Date", "Label", "Amount", "Transaction ID", "Score"]
        )

        for row_num, entry in enumerate(payload.automatic_matches, start=2):
            operation = operations.get(entry.operation_id)
            row_data = [
                entry.operation_id,
                operation.date if operation else "",
                entry.label,
                float(entry.amount),
                entry.transaction_id or "",
                f"{operation.matching_score:.2f}"
                if operation and operation.matching_score is not None
                else "",
            ]
            for col, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = THIN_BORDER
                cell.fill = MATCH_FILL

        self._auto_fit_columns(ws)

    def _create_manual_sheet(
        self,
        wb: Workbook,
        payload: ConfirmationPayload,
        operations: dict[str, Operation],
    ) -> None:
        """Create the manual decisions sheet."""
        ws = wb.create_sheet(self.sheet_config.manual_decisions.name)
        self._write_headers(
            ws,
            [
                "Operation ID",
                "Date",
                "Label",
                "Amount",
                "Decision",
                "Transaction ID",
                "Notes",
            ],
        )

        for row_num, entry in enumerate(payload.manual_decisions, start=2):
            operation = operations.get(entry.operation_id)
            row_data = [
                entry.operation_id,
                operation.date if operation else "",
                operation.label if operation else "",
                float(operation.amount) if operation else "",
                "Included" if entry.include else "Ignored",
                entry.transaction_id or "",
                entry.notes or "",
            ]
            for col, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = THIN_BORDER
                cell.fill = MATCH_FILL if entry.include else IGNORED_FILL

        self._auto_fit_columns(ws)

    def _create_audit_trail_sheet(
        self,
        wb: Workbook,
        result: ReconciliationResult,
        payload: ConfirmationPayload,
    ) -> None:
        """Create the audit trail sheet."""
        ws = wb.create_sheet(self.sheet_config.audit_trail.name)

        ws["A1"] = "Reconciliation Audit Trail"
        ws["A1"].font = Font(size=14, bold=True)

        audit_info = [
            ("Generated At:", datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
            ("Validated At:", _timestamp(result.validated_at)),
            ("Validated By:", result.validated_by or "-"),
            ("Acknowledged:", "Yes" if payload.acknowledgement else "No"),
            ("Manual Review Comment:", payload.comments.manual or "-"),
            ("Final Comment:", payload.comments.final or "-"),
            ("Config File:", self.config.config_file_path or "Default"),
        ]

        row = 3
        for label, value in audit_info:
            ws[f"A{row}"] = label
            ws[f"B{row}"] = value
            row += 1

        self._auto_fit_columns(ws)

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            column = column_cells[0].column_letter
            max_length = max(
                (len(str(cell.value)) for cell in column_cells if cell.value is not None),
                default=0,
            )
            ws.column_dimensions[column].width = min(max_length + 2, 50)


def _index(operations: list[Operation]) -> dict[str, Operation]:
    return {op.id: op for op in operations}


def _money(value) -> str:
    return "-" if value is None else f"{value:,.2f}"


def _timestamp(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"
