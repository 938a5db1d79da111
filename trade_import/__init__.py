"""
trade_import - Contracts / shipments CSV import pipeline.

Public API:
    run_import(contracts_file=..., shipments_file=..., dry_run=False) → ImportResult
    run_import(file=...)                                              (legacy single file)
"""

from trade_import.errors import (                        # noqa: F401
    CSVFormatError, ImportAbortedError, TradeImportError, ValidationFailedError,
)
from trade_import.importer import ImportResult, run_import   # noqa: F401
from trade_import.plan import ImportPlan, build_plan         # noqa: F401
from trade_import.report import ImportStats                  # noqa: F401
