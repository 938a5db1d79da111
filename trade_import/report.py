"""
trade_import.report - Run statistics and the dry-run preview.

ImportStats is threaded through a live run and printed at the end.
render_preview() is the dry-run output: it only reads the plan (and,
when given, the existing lookups) and never touches the database.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Optional

import config
from trade_import.normalizers import format_currency

if TYPE_CHECKING:
    from services.master_data_service import Lookups
    from trade_import.plan import ImportPlan

RULE_WIDTH = 70


@dataclass
class ImportStats:
    ports_created: int = 0
    shipping_companies_created: int = 0
    supplier_companies_created: int = 0
    beneficiary_companies_created: int = 0
    contracts_created: int = 0              # PENDING, from the contracts file
    contracts_from_shipments: int = 0       # ACTIVE, synthesised
    contract_lines_created: int = 0
    shipments_created: int = 0
    shipment_lines_created: int = 0
    transactions_created: int = 0
    customs_costs_created: int = 0
    skipped_records: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    def render(self) -> str:
        return "\n".join([
            "STATISTICS:",
            "  Master Data:",
            f"    Ports created: {self.ports_created}",
            f"    Shipping companies created: {self.shipping_companies_created}",
            f"    Supplier companies created: {self.supplier_companies_created}",
            f"    Beneficiary companies created: {self.beneficiary_companies_created}",
            "  Contracts:",
            f"    Contracts created (PENDING): {self.contracts_created}",
            f"    Contracts created (ACTIVE from shipments): {self.contracts_from_shipments}",
            f"    Contract lines created: {self.contract_lines_created}",
            "  Shipments:",
            f"    Shipments created: {self.shipments_created}",
            f"    Shipment lines created: {self.shipment_lines_created}",
            "  Finance:",
            f"    Transactions created: {self.transactions_created}",
            f"    Customs clearing costs created: {self.customs_costs_created}",
            f"  Skipped invalid records: {self.skipped_records}",
        ])


def banner(title: str, char: str = "═") -> str:
    rule = char * RULE_WIDTH
    return f"{rule}\n{title}\n{rule}"


# ── Dry-run preview ───────────────────────────────────────────────────

def unique_master_names(plan: "ImportPlan") -> dict[str, set[str]]:
    """Distinct supplier / port / shipping-line names the plan refers to."""
    suppliers: set[str] = set()
    ports: set[str] = set()
    lines: set[str] = set()

    for s in plan.shipments:
        if s.supplier_name:
            suppliers.add(s.supplier_name)
        ports.update(p for p in (s.pol, s.pod) if p)
        if s.shipping_line:
            lines.add(s.shipping_line)
    for c in plan.all_contracts:
        if c.supplier_name:
            suppliers.add(c.supplier_name)
        ports.update(p for p in (c.pol, c.pod) if p)

    return {"suppliers": suppliers, "ports": ports, "shipping_lines": lines}


def count_new_names(plan: "ImportPlan", lookups: "Lookups") -> dict[str, int]:
    """
    How many of the plan's master-data names have no match in the
    existing lookups.  Works on a copy: names are registered as they are
    counted so near-duplicates inside the file are not double counted.
    """
    from services.master_data_service import Kind, find, normalize_name

    scratch = lookups.copy()
    kinds = {"suppliers": Kind.SUPPLIER, "ports": Kind.PORT,
             "shipping_lines": Kind.SHIPPING_LINE}
    result: dict[str, int] = {}
    for label, names in unique_master_names(plan).items():
        kind = kinds[label]
        new = 0
        for name in sorted(names):
            if find(kind, name, scratch) is not None:
                continue
            key = normalize_name(name)
            if kind is Kind.SUPPLIER and key in scratch.companies:
                # A live run promotes the existing company instead.
                scratch.supplier_companies[key] = scratch.companies[key]
                continue
            scratch.register(kind, name, f"new:{name}")
            new += 1
        result[label] = new
    return result


def render_preview(
    plan: "ImportPlan",
    lookups: Optional["Lookups"] = None,
    contract_limit: int = config.PREVIEW_CONTRACTS,
    shipment_limit: int = config.PREVIEW_SHIPMENTS,
) -> str:
    out: list[str] = ["", banner("DRY RUN PREVIEW - No changes will be made")]

    out.append(f"\nPENDING CONTRACTS (from Contracts file): {len(plan.pending_contracts)}")
    out.append("─" * 50)
    for c in plan.pending_contracts[:contract_limit]:
        out.append(f"  {c.contract_no} | {c.supplier_name or 'N/A'}")
        out.append(f"    Products: {len(c.product_lines)} | {c.pol or '?'} → {c.pod or '?'}")
    if len(plan.pending_contracts) > contract_limit:
        out.append(f"  ... and {len(plan.pending_contracts) - contract_limit} more")

    out.append(f"\nAUTO-CREATED CONTRACTS (from Shipments): {len(plan.auto_contracts)}")
    out.append("─" * 50)
    for c in plan.auto_contracts[:contract_limit]:
        out.append(f"  {c.contract_no} | {c.supplier_name or 'N/A'} [ACTIVE - already shipped]")
    if len(plan.auto_contracts) > contract_limit:
        out.append(f"  ... and {len(plan.auto_contracts) - contract_limit} more")

    out.append(f"\nSHIPMENTS TO CREATE: {len(plan.shipments)}")
    out.append("─" * 50)
    for i, s in enumerate(plan.shipments[:shipment_limit], start=1):
        out.append(f"  [{i}] {s.sn}")
        out.append(f"      Supplier: {s.supplier_name or 'N/A'}")
        out.append(f"      Contract: {s.contract_no or 'N/A'}")
        out.append(f"      Products: {len(s.product_lines)} | {s.pol or '?'} → {s.pod or '?'}")
        out.append(f"      Status: {s.status} | ETA: {s.eta or 'N/A'}")
        if s.total_value_usd:
            out.append(f"      Value: {format_currency(s.total_value_usd)} "
                       f"(Paid: {format_currency(s.paid_value_usd or 0)})")
    if len(plan.shipments) > shipment_limit:
        out.append(f"  ... and {len(plan.shipments) - shipment_limit} more shipments")

    problems = plan.invalid_records()
    if problems:
        out.append(f"\nRECORDS WITH ERRORS: {len(problems)}")
        out.append("─" * 50)
        for key, errors in problems:
            out.append(f"  {key or '(no key)'}: {', '.join(errors)}")

    out.append("")
    out.append(banner("SUMMARY"))
    out.append(f"  Contracts (PENDING from file): {len(plan.pending_contracts)}")
    out.append(f"  Contracts (ACTIVE auto-created): {len(plan.auto_contracts)}")
    out.append(f"  Total Contracts: {len(plan.all_contracts)}")
    out.append(f"  Shipments: {len(plan.shipments)}")
    out.append(f"  Finance Transactions: {plan.finance_candidates}")
    out.append(f"  Customs Clearing Records: {plan.customs_candidates}")
    out.append(f"  Warnings: {plan.warning_count}")

    names = unique_master_names(plan)
    out.append("\n  Master Data referenced:")
    out.append(f"    Unique Suppliers: {len(names['suppliers'])}")
    out.append(f"    Unique Ports: {len(names['ports'])}")
    out.append(f"    Unique Shipping Lines: {len(names['shipping_lines'])}")

    if lookups is not None:
        new = count_new_names(plan, lookups)
        out.append("  Master Data to Create (no match in database):")
        out.append(f"    Suppliers: {new['suppliers']}")
        out.append(f"    Ports: {new['ports']}")
        out.append(f"    Shipping Lines: {new['shipping_lines']}")

    out.append("")
    out.append(banner("DRY RUN COMPLETE - Run without --dry-run to import"))
    return "\n".join(out)
