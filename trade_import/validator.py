"""
trade_import.validator - Per-aggregate checks.

Errors block the record; warnings are informational only.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from trade_import.normalizers import is_iso_date
from trade_import.records import ParsedContract, ParsedShipment

SHIPMENT_DATE_FIELDS = (
    ("eta", "ETA"),
    ("customs_clearance_date", "customs clearance date"),
    ("contract_ship_date", "contract ship date"),
    ("bl_date", "B/L date"),
    ("deposit_date", "deposit date"),
)


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _route_warnings(pol: str, pod: str, warnings: list[str]) -> None:
    if not pol:
        warnings.append("Missing Port of Loading (POL)")
    if not pod:
        warnings.append("Missing Port of Discharge (POD)")


def validate_shipment(shipment: ParsedShipment) -> ValidationResult:
    result = ValidationResult()

    if not shipment.sn:
        result.errors.append("Missing shipment number (sn)")

    for attr, label in SHIPMENT_DATE_FIELDS:
        value = getattr(shipment, attr)
        if value is not None and not is_iso_date(value):
            result.errors.append(f"Invalid {label} date format: {value}")

    if not shipment.product_lines:
        result.warnings.append("No product lines found")
    if shipment.total_value_usd is not None and shipment.total_value_usd < 0:
        result.warnings.append(f"Negative total value: {shipment.total_value_usd}")
    _route_warnings(shipment.pol, shipment.pod, result.warnings)

    return result


def validate_contract(contract: ParsedContract) -> ValidationResult:
    result = ValidationResult()

    if not contract.contract_no:
        result.errors.append("Missing contract number")

    if not contract.product_lines:
        result.warnings.append("No product lines found")
    if contract.total_value is not None and contract.total_value < 0:
        result.warnings.append(f"Negative total value: {contract.total_value}")
    _route_warnings(contract.pol, contract.pod, result.warnings)

    return result


def validate_plan(plan) -> tuple[list[tuple[ParsedContract, ValidationResult]],
                                 list[tuple[ParsedShipment, ValidationResult]]]:
    """Check every contract (pending, then auto) and every shipment of a plan."""
    contracts = [(c, validate_contract(c)) for c in plan.all_contracts]
    shipments = [(s, validate_shipment(s)) for s in plan.shipments]
    return contracts, shipments
