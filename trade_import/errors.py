"""
trade_import.errors - Exception hierarchy for the import pipeline.

Normalizers never raise; everything here is raised by the stages that
sit above them (file parsing, validation gate, live persistence).
"""

from __future__ import annotations


class TradeImportError(Exception):
    """Base class for every failure the CLI reports without a traceback."""


class CSVFormatError(TradeImportError):
    """Raised when a file cannot be read as the known semicolon layout."""


class ValidationFailedError(TradeImportError):
    """Raised when a live import is attempted over invalid records."""

    def __init__(self, message: str, failures: list[tuple[str, list[str]]]):
        super().__init__(message)
        self.failures = failures      # [(record key, [errors])]


class ImportAbortedError(TradeImportError):
    """
    Raised after the live transaction was rolled back.

    ``record`` names the contract number or SN being written when the
    failure happened (empty if it happened outside a record).
    ``interrupted`` is set when the run was stopped with Ctrl-C.
    """

    def __init__(self, message: str, record: str = "", interrupted: bool = False):
        super().__init__(message)
        self.record = record
        self.interrupted = interrupted      # Ctrl-C rather than an error
