"""Reports archiving confirmed reconciliations."""

from .excel_generator import ExcelReportGenerator

__all__ = ["ExcelReportGenerator"]
