"""Bank statement reconciliation workflow."""

__version__ = "0.1.0"
