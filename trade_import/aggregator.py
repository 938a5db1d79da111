"""
trade_import.aggregator - Group physical rows into Contract / Shipment aggregates.

The exports put one record on several lines: the first line carries the
record (status, route, money) and every following product-only line adds
another product to it.  Classification is a small decision table:

    state                        row                              action
    ───────────────────────────  ───────────────────────────────  ────────
    any                          new-record signal                START
    ACCUMULATING_PRODUCT_LINES   product text, no signal          CONTINUE
    otherwise                                                     DROP

Shipment signal: status word, or POL + ETA, or POL + total value.
Contract signal: supplier name together with POL or total value.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Iterable, Optional, TypeVar

from trade_import.keys import KeyAllocator
from trade_import.normalizers import (
    is_blank_value, map_status, parse_currency, parse_date, parse_integer,
    parse_weight,
)
from trade_import.records import (
    PENDING, ParsedContract, ParsedShipment, ProductLine, RawRow,
)

logger = logging.getLogger(__name__)

DELAY_LABEL = "حالة التأخير"
NOTES_SEPARATOR = " | "


class GroupState(enum.Enum):
    AWAITING_RECORD = "awaiting_record"
    ACCUMULATING_PRODUCT_LINES = "accumulating_product_lines"


class RowAction(enum.Enum):
    START = "start"
    CONTINUE = "continue"
    DROP = "drop"


# ── Classification ────────────────────────────────────────────────────

def _has(value: str) -> bool:
    return bool(value and value.strip())


def _has_total(row: RawRow) -> bool:
    return _has(row.total_value) and not is_blank_value(row.total_value)


def starts_shipment(row: RawRow) -> bool:
    has_pol = _has(row.pol)
    return (
        _has(row.status)
        or (has_pol and _has(row.eta))
        or (has_pol and _has_total(row))
    )


def starts_contract(row: RawRow) -> bool:
    return _has(row.supplier_name) and (_has(row.pol) or _has_total(row))


def _classify(row: RawRow, state: GroupState, is_new: bool) -> RowAction:
    if is_new:
        return RowAction.START
    if state is GroupState.ACCUMULATING_PRODUCT_LINES and _has(row.product_type):
        return RowAction.CONTINUE
    return RowAction.DROP


def classify_shipment_row(row: RawRow, state: GroupState) -> RowAction:
    return _classify(row, state, starts_shipment(row))


def classify_contract_row(row: RawRow, state: GroupState) -> RowAction:
    return _classify(row, state, starts_contract(row))


# ── Building blocks ───────────────────────────────────────────────────

def product_line_from_row(row: RawRow) -> Optional[ProductLine]:
    """The row's product, or None when the product cell is empty."""
    text = row.product_type.strip()
    if not text:
        return None
    return ProductLine(
        product_text=text,
        weight_ton=parse_weight(row.weight_ton),
        price_per_ton=parse_currency(row.price_per_ton),
        container_count=parse_integer(row.container_count),
    )


def combine_notes(notes: str, delay_status: str) -> str:
    notes, delay_status = notes.strip(), delay_status.strip()
    if not delay_status:
        return notes
    annotation = f"{DELAY_LABEL}: {delay_status}"
    return f"{notes}{NOTES_SEPARATOR}{annotation}" if notes else annotation


def build_shipment(row: RawRow, sn: str) -> ParsedShipment:
    shipment = ParsedShipment(
        sn=sn,
        contract_no=row.contract_no.strip(),
        invoice_no=row.invoice_no.strip(),
        status=map_status(row.status),
        subject=row.subject.strip(),
        notes=combine_notes(row.notes, row.delay_status),
        paperwork_status=row.documents.strip(),
        delay_status=row.delay_status.strip(),
        supplier_name=row.supplier_name.strip(),
        shipping_line=row.shipping_company.strip(),
        final_beneficiary_name=row.final_beneficiary.strip(),
        pol=row.pol.strip(),
        pod=row.pod.strip(),
        eta=parse_date(row.eta),
        free_time_days=parse_integer(row.free_time),
        customs_clearance_date=parse_date(row.customs_clearance_date),
        bl_no=row.bl_no.strip(),
        vessel_name=row.tracking.strip(),
        contract_ship_date=parse_date(row.contract_ship_date),
        bl_date=parse_date(row.bl_date),
        deposit_date=parse_date(row.down_payment_date),
        final_destination=row.final_destination.strip(),
        price_per_ton=parse_currency(row.price_per_ton),
        total_value_usd=parse_currency(row.total_value),
        paid_value_usd=parse_currency(row.paid_value),
        balance_value_usd=parse_currency(row.balance),
        line_no=row.line_no,
    )
    first = product_line_from_row(row)
    if first is not None:
        shipment.add_line(first)
    return shipment


def build_contract(row: RawRow, contract_no: str, status: str) -> ParsedContract:
    contract = ParsedContract(
        contract_no=contract_no,
        invoice_no=row.invoice_no.strip(),
        status=status,
        supplier_name=row.supplier_name.strip(),
        total_value=parse_currency(row.total_value),
        paid_value=parse_currency(row.paid_value),
        pol=row.pol.strip(),
        pod=row.pod.strip(),
        final_beneficiary_name=row.final_beneficiary.strip(),
        final_destination=row.final_destination.strip(),
        line_no=row.line_no,
    )
    first = product_line_from_row(row)
    if first is not None:
        contract.add_line(first)
    return contract


# ── Grouping loop ─────────────────────────────────────────────────────

A = TypeVar("A", ParsedShipment, ParsedContract)


def _group(
    rows: Iterable[RawRow],
    classify: Callable[[RawRow, GroupState], RowAction],
    start: Callable[[RawRow], A],
) -> list[A]:
    aggregates: list[A] = []
    current: Optional[A] = None
    state = GroupState.AWAITING_RECORD

    for row in rows:
        action = classify(row, state)

        if action is RowAction.START:
            if current is not None:
                aggregates.append(current)
            current = start(row)
            state = GroupState.ACCUMULATING_PRODUCT_LINES
        elif action is RowAction.CONTINUE:
            line = product_line_from_row(row)
            if line is not None and current is not None:
                current.add_line(line)
        else:
            logger.debug("line %s dropped: no record signal and nothing to attach to",
                         row.line_no)

    if current is not None:
        aggregates.append(current)
    return aggregates


def group_shipments(rows: Iterable[RawRow]) -> list[ParsedShipment]:
    """
    Combine rows into shipments.

    SN priority: B/L number, contract number, invoice number, generated
    AUTO-NNNN.  Duplicates get the contract number, then a counter.
    """
    keys = KeyAllocator("AUTO")

    def start(row: RawRow) -> ParsedShipment:
        contract_no = row.contract_no.strip()
        base = row.bl_no.strip() or contract_no or row.invoice_no.strip() or keys.fallback()
        return build_shipment(row, keys.allocate(base, contract_no))

    return _group(rows, classify_shipment_row, start)


def group_contracts(rows: Iterable[RawRow], status: str = PENDING) -> list[ParsedContract]:
    """Combine rows of the contracts file into contracts of the given status."""
    keys = KeyAllocator(status)

    def start(row: RawRow) -> ParsedContract:
        base = row.contract_no.strip() or row.invoice_no.strip() or keys.fallback()
        return build_contract(row, keys.allocate(base), status)

    return _group(rows, classify_contract_row, start)
