"""Readers and writers for offline decision sheets."""

from .decision_sheet import DecisionSheet, SheetApplication

__all__ = ["DecisionSheet", "SheetApplication"]
