"""
Manual decision sheets.

Exports the manual decision ledger to CSV so operations can be adjudicated
offline, and applies a filled-in sheet back onto the ledger.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
import logging

import pandas as pd

from ..config import ReconConfig
from ..utils.exceptions import DecisionSheetError
from ..workflow.ledger import ManualDecisionLedger

logger = logging.getLogger(__name__)

TRUE_VALUES = {"true", "yes", "y", "1", "x", "include", "included"}
FALSE_VALUES = {"false", "no", "n", "0", "", "exclude", "excluded", "ignore", "ignored"}


@dataclass
class SheetApplication:
    """Outcome of applying a decision sheet to a ledger."""

    applied: int = 0
    unknown_operation_ids: list[str] = field(default_factory=list)
    invalid_rows: list[int] = field(default_factory=list)


class DecisionSheet:
    """Reads and writes manual decision sheets."""

    def __init__(self, config: ReconConfig):
        """
        Initialize with configuration.

        Args:
            config: Application configuration object
        """
        sheet_config = config.input.decisions
        self.encoding = sheet_config.encoding
        self.delimiter = sheet_config.delimiter
        self.column_mappings = sheet_config.column_mappings

    def _column(self, key: str) -> str:
        return self.column_mappings.get(key, key)

    def to_frame(self, ledger: ManualDecisionLedger) -> pd.DataFrame:
        """Tabulate the ledger, one row per operation awaiting a decision."""
        rows = [
            {
                self._column("operation_id"): d.operation_id,
                self._column("date"): d.operation.date.isoformat(),
                self._column("label"): d.operation.label,
                self._column("amount"): float(d.operation.signed_amount),
                self._column("include"): d.include,
                self._column("transaction_id"): d.transaction_id or "",
                self._column("notes"): d.notes,
            }
            for d in ledger
        ]
        columns = [
            self._column(key)
            for key in (
                "operation_id",
                "date",
                "label",
                "amount",
                "include",
                "transaction_id",
                "notes",
            )
        ]
        return pd.DataFrame(rows, columns=columns)

    def export(self, ledger: ManualDecisionLedger, output_path: Path) -> Path:
        """
        Write the ledger to a CSV decision sheet.

        Args:
            ledger: Manual decision ledger
            output_path: Destination CSV path

        Returns:
            Path to the written sheet
        """
        df = self.to_frame(ledger)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            df.to_csv(output_path, index=False, encoding=self.encoding, sep=self.delimiter)
        except OSError as e:
            raise DecisionSheetError(f"Failed to write decision sheet: {e}") from e

        logger.info(f"Wrote {len(df)} decisions to {output_path}")
        return output_path

    def read(self, file_path: Path) -> pd.DataFrame:
        """
        Read a decision sheet.

        Raises:
            DecisionSheetError: If the file cannot be parsed or lacks the
                operation id column
        """
        logger.info(f"Reading decision sheet: {file_path}")
        try:
            df = pd.read_csv(
                file_path,
                encoding=self.encoding,
                delimiter=self.delimiter,
                dtype=str,
                keep_default_na=False,
            )
        except Exception as e:
            logger.error(f"Failed to read decision sheet: {e}")
            raise DecisionSheetError(f"Failed to read decision sheet: {e}") from e

        id_col = self._column("operation_id")
        if id_col not in df.columns:
            raise DecisionSheetError(f"Decision sheet has no '{id_col}' column")
        return df

    def apply(self, file_path: Path, ledger: ManualDecisionLedger) -> SheetApplication:
        """
        Apply a filled-in decision sheet to a ledger.

        Rows for operations the ledger does not know are skipped; rows with an
        unreadable include flag are reported and left untouched.

        Args:
            file_path: Path to the CSV sheet
            ledger: Ledger to update

        Returns:
            Summary of what was applied
        """
        df = self.read(file_path)
        outcome = SheetApplication()

        id_col = self._column("operation_id")
        include_col = self._column("include")
        tx_col = self._column("transaction_id")
        notes_col = self._column("notes")

        for idx, row in df.iterrows():
            operation_id = str(row[id_col]).strip()
            if not operation_id:
                continue
            if ledger.get(operation_id) is None:
                logger.warning(f"Row {idx}: unknown operation {operation_id}, skipping")
                outcome.unknown_operation_ids.append(operation_id)
                continue

            include = self._parse_flag(row.get(include_col))
            if include is None:
                logger.warning(f"Row {idx}: unreadable include flag, skipping")
                outcome.invalid_rows.append(int(idx))
                continue

            ledger.toggle_include(operation_id, include)
            if tx_col in df.columns:
                ledger.set_transaction(operation_id, self._text(row.get(tx_col)))
            if notes_col in df.columns:
                ledger.set_notes(operation_id, self._text(row.get(notes_col)))
            outcome.applied += 1

        logger.info(
            f"Applied {outcome.applied} decisions from {file_path.name} "
            f"({len(outcome.unknown_operation_ids)} unknown, "
            f"{len(outcome.invalid_rows)} invalid)"
        )
        return outcome

    @staticmethod
    def _text(value: Any) -> str:
        if value is None or pd.isna(value):
            return ""
        return str(value)

    @staticmethod
    def _parse_flag(value: Any) -> Optional[bool]:
        """Parse an include flag; None when it cannot be read."""
        if isinstance(value, bool):
            return value
        text = DecisionSheet._text(value).strip().lower()
        if text in TRUE_VALUES:
            return True
        if text in FALSE_VALUES:
            return False
        return None
