"""
trade_import.assembler - Insert-ready aggregates.

Contracts come from two places: the pending-contracts file, and
shipments whose contract number was never declared there.  The latter
are synthesised here with status ACTIVE (the goods already moved).
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from trade_import.records import ACTIVE, ParsedContract, ParsedShipment


def recompute_totals(aggregate: ParsedShipment | ParsedContract) -> None:
    """Reset container / weight totals to the sums over the product lines."""
    aggregate.total_containers = sum(l.container_count or 0 for l in aggregate.product_lines)
    aggregate.total_weight = sum(l.weight_ton or 0 for l in aggregate.product_lines)


def contract_from_shipment(shipment: ParsedShipment) -> ParsedContract:
    contract = ParsedContract(
        contract_no=shipment.contract_no or shipment.invoice_no or shipment.sn,
        invoice_no=shipment.invoice_no,
        status=ACTIVE,
        supplier_name=shipment.supplier_name,
        product_lines=[replace(l) for l in shipment.product_lines],
        total_value=shipment.total_value_usd,
        paid_value=shipment.paid_value_usd,
        pol=shipment.pol,
        pod=shipment.pod,
        final_beneficiary_name=shipment.final_beneficiary_name,
        final_destination=shipment.final_destination,
        shipment_ids=[shipment.sn],
        line_no=shipment.line_no,
    )
    recompute_totals(contract)
    return contract


def contracts_for_unmatched_shipments(
    shipments: Iterable[ParsedShipment],
    pending: Iterable[ParsedContract],
) -> list[ParsedContract]:
    """
    One ACTIVE contract per distinct contract number that shipments
    reference but the pending file does not declare.  Later shipments
    on the same number are recorded in shipment_ids.
    """
    declared = {c.contract_no.lower() for c in pending}
    created: dict[str, ParsedContract] = {}

    for shipment in shipments:
        if not shipment.contract_no:
            continue
        key = shipment.contract_no.lower()
        if key in declared:
            continue
        if key in created:
            created[key].shipment_ids.append(shipment.sn)
            continue
        created[key] = contract_from_shipment(shipment)

    return list(created.values())


def merge_contracts_from_shipments(shipments: Iterable[ParsedShipment]) -> list[ParsedContract]:
    """
    Legacy single-file mode: every contract is derived from its shipments.

    Shipments sharing a contract number fold into one contract; product
    lines with identical text are merged (weights and containers summed)
    and the contract value is the sum of the shipment values.
    """
    merged: dict[str, ParsedContract] = {}

    for shipment in shipments:
        if not shipment.contract_no:
            continue
        key = shipment.contract_no.lower()
        contract = merged.get(key)
        if contract is None:
            merged[key] = contract_from_shipment(shipment)
            continue

        by_text = {l.product_text: l for l in contract.product_lines}
        for line in shipment.product_lines:
            existing = by_text.get(line.product_text)
            if existing is None:
                copy = replace(line)
                contract.product_lines.append(copy)
                by_text[copy.product_text] = copy
            else:
                existing.weight_ton = (existing.weight_ton or 0) + (line.weight_ton or 0)
                existing.container_count = (existing.container_count or 0) + (line.container_count or 0)

        contract.total_value = (contract.total_value or 0) + (shipment.total_value_usd or 0)
        contract.shipment_ids.append(shipment.sn)
        recompute_totals(contract)

    return list(merged.values())
