"""
trade_import.plan - Everything that happens before the database.

parse → group → assemble → validate, producing an ImportPlan.  Dry-run
and live-run share this stage verbatim and only diverge in the
persister that consumes the plan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from services.finance_service import FinanceService
from trade_import.aggregator import group_contracts, group_shipments
from trade_import.assembler import (
    contracts_for_unmatched_shipments, merge_contracts_from_shipments,
    recompute_totals,
)
from trade_import.csv_parser import parse_csv_file
from trade_import.field_map import LEGACY_LAYOUT, TWO_FILE_LAYOUT
from trade_import.records import ParsedContract, ParsedShipment, RawRow
from trade_import.validator import ValidationResult, validate_plan

logger = logging.getLogger(__name__)

TWO_FILE = "two-file"
LEGACY = "legacy"


@dataclass
class ImportPlan:
    mode: str
    pending_contracts: list[ParsedContract] = field(default_factory=list)
    auto_contracts: list[ParsedContract] = field(default_factory=list)
    shipments: list[ParsedShipment] = field(default_factory=list)
    contract_checks: list[tuple[ParsedContract, ValidationResult]] = field(default_factory=list)
    shipment_checks: list[tuple[ParsedShipment, ValidationResult]] = field(default_factory=list)

    @property
    def all_contracts(self) -> list[ParsedContract]:
        return self.pending_contracts + self.auto_contracts

    @property
    def finance_candidates(self) -> int:
        return sum(1 for s in self.shipments if FinanceService.needs_transaction(s))

    @property
    def customs_candidates(self) -> int:
        return sum(1 for s in self.shipments if FinanceService.needs_customs_cost(s))

    @property
    def warning_count(self) -> int:
        return sum(len(r.warnings) for _, r in self.contract_checks + self.shipment_checks)

    @property
    def is_valid(self) -> bool:
        return not self.invalid_records()

    def validate(self) -> None:
        self.contract_checks, self.shipment_checks = validate_plan(self)
        for aggregate, result in self.contract_checks + self.shipment_checks:
            for warning in result.warnings:
                logger.debug("%s: %s", aggregate.key, warning)

    def invalid_records(self) -> list[tuple[str, list[str]]]:
        """[(key, errors)] for every aggregate that failed validation."""
        return [
            (aggregate.key, result.errors)
            for aggregate, result in self.contract_checks + self.shipment_checks
            if not result.is_valid
        ]

    def invalid_keys(self) -> tuple[set[str], set[str]]:
        """(contract numbers, SNs) of the records a lenient run skips."""
        contracts = {c.key for c, r in self.contract_checks if not r.is_valid}
        shipments = {s.key for s, r in self.shipment_checks if not r.is_valid}
        return contracts, shipments


def build_plan(shipment_rows: list[RawRow],
               contract_rows: Optional[list[RawRow]] = None) -> ImportPlan:
    """
    Group, assemble and validate.  Without contract rows the run is in
    legacy mode and every contract is merged out of the shipments.
    """
    shipments = group_shipments(shipment_rows)
    for shipment in shipments:
        recompute_totals(shipment)

    if contract_rows is None:
        plan = ImportPlan(
            mode=LEGACY,
            auto_contracts=merge_contracts_from_shipments(shipments),
            shipments=shipments,
        )
    else:
        pending = group_contracts(contract_rows)
        plan = ImportPlan(
            mode=TWO_FILE,
            pending_contracts=pending,
            auto_contracts=contracts_for_unmatched_shipments(shipments, pending),
            shipments=shipments,
        )

    plan.validate()
    logger.info(
        "%s plan: %d pending contracts, %d auto contracts, %d shipments",
        plan.mode, len(plan.pending_contracts), len(plan.auto_contracts), len(plan.shipments),
    )
    return plan


def plan_two_file(contracts_path: str | Path, shipments_path: str | Path) -> ImportPlan:
    contract_rows = parse_csv_file(contracts_path, TWO_FILE_LAYOUT)
    shipment_rows = parse_csv_file(shipments_path, TWO_FILE_LAYOUT)
    logger.info("read %d contract rows, %d shipment rows", len(contract_rows), len(shipment_rows))
    return build_plan(shipment_rows, contract_rows)


def plan_legacy(path: str | Path) -> ImportPlan:
    rows = parse_csv_file(path, LEGACY_LAYOUT)
    logger.info("read %d rows", len(rows))
    return build_plan(rows)
