"""
trade_import.importer - Top-level orchestrator.

Coordinates csv_parser → aggregator → assembler → validator (the plan)
and hands the plan to a persister.  The caller picks the mode:

    two-file  contracts_file + shipments_file
    legacy    file (contracts merged out of the shipments)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

import config
from trade_import.errors import TradeImportError
from trade_import.persister import DryRunPersister, Persister, TransactionalPersister
from trade_import.plan import ImportPlan, plan_legacy, plan_two_file
from trade_import.report import ImportStats

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    plan: ImportPlan
    stats: ImportStats
    dry_run: bool


def load_plan(
    *,
    contracts_file: Optional[str | Path] = None,
    shipments_file: Optional[str | Path] = None,
    file: Optional[str | Path] = None,
) -> ImportPlan:
    if file is not None:
        if contracts_file is not None or shipments_file is not None:
            raise TradeImportError("use either --file or --contracts-file/--shipments-file, not both")
        return plan_legacy(file)
    if contracts_file is None or shipments_file is None:
        raise TradeImportError("two-file mode needs both --contracts-file and --shipments-file")
    return plan_two_file(contracts_file, shipments_file)


def run_import(
    *,
    contracts_file: Optional[str | Path] = None,
    shipments_file: Optional[str | Path] = None,
    file: Optional[str | Path] = None,
    dry_run: bool = False,
    clear: bool = config.CLEAR_BEFORE_IMPORT,
    continue_on_error: bool = False,
    preview_limit: Optional[int] = None,
    persister: Optional[Persister] = None,
    out: Optional[TextIO] = None,
) -> ImportResult:
    """
    Parse the input files and either preview or import them.

    Raises
    ------
    CSVFormatError         unreadable input
    ValidationFailedError  live run over invalid records (strict mode)
    ImportAbortedError     live run failed and was rolled back
    """
    plan = load_plan(contracts_file=contracts_file, shipments_file=shipments_file, file=file)

    if persister is None:
        if dry_run:
            persister = DryRunPersister(
                contract_limit=preview_limit or config.PREVIEW_CONTRACTS,
                shipment_limit=preview_limit or config.PREVIEW_SHIPMENTS,
                out=out,
            )
        else:
            persister = TransactionalPersister(
                clear=clear, continue_on_error=continue_on_error, out=out,
            )

    logger.info("persisting %s plan with %s", plan.mode, type(persister).__name__)
    stats = persister.persist(plan)
    return ImportResult(plan=plan, stats=stats, dry_run=isinstance(persister, DryRunPersister))
