import pytest

from trade_import.aggregator import (
    GroupState, RowAction, classify_contract_row, classify_shipment_row,
    combine_notes, group_contracts, group_shipments,
)
from trade_import.csv_parser import parse_csv_text
from trade_import.field_map import TWO_FILE_LAYOUT
from trade_import.keys import KeyAllocator
from trade_import.records import ACTIVE, PENDING, RawRow
from tests.csvdata import EXAMPLE_ROW, LABELED_HEADER


def rows(*dicts):
    return [RawRow(line_no=i, **d) for i, d in enumerate(dicts, start=1)]


# ── Classification table ──────────────────────────────────────────────

@pytest.mark.parametrize("row", [
    RawRow(status="أبحر"),
    RawRow(pol="Mumbai", eta="2025/03/10"),
    RawRow(pol="Mumbai", total_value="5000"),
])
def test_shipment_signal_starts_record(row):
    for state in GroupState:
        assert classify_shipment_row(row, state) is RowAction.START


def test_shipment_dash_total_is_not_a_signal():
    row = RawRow(pol="Mumbai", total_value="$ -", product_type="Rice")
    assert classify_shipment_row(row, GroupState.ACCUMULATING_PRODUCT_LINES) is RowAction.CONTINUE


def test_product_row_continues_only_when_accumulating():
    row = RawRow(product_type="Sugar")
    assert classify_shipment_row(row, GroupState.ACCUMULATING_PRODUCT_LINES) is RowAction.CONTINUE
    assert classify_shipment_row(row, GroupState.AWAITING_RECORD) is RowAction.DROP


def test_row_without_product_or_signal_is_dropped():
    row = RawRow(notes="see attachment")
    assert classify_shipment_row(row, GroupState.ACCUMULATING_PRODUCT_LINES) is RowAction.DROP


def test_contract_signal_needs_supplier_and_route_or_value():
    assert classify_contract_row(RawRow(supplier_name="Acme", pol="Mumbai"),
                                 GroupState.AWAITING_RECORD) is RowAction.START
    assert classify_contract_row(RawRow(supplier_name="Acme", total_value="100"),
                                 GroupState.AWAITING_RECORD) is RowAction.START
    assert classify_contract_row(RawRow(supplier_name="Acme"),
                                 GroupState.AWAITING_RECORD) is RowAction.DROP
    assert classify_contract_row(RawRow(supplier_name="Acme", product_type="Tea"),
                                 GroupState.ACCUMULATING_PRODUCT_LINES) is RowAction.CONTINUE


# ── Shipments ─────────────────────────────────────────────────────────

def test_status_row_and_two_product_rows_make_one_shipment():
    shipments = group_shipments(rows(
        dict(status="أبحر", bl_no="BL-1", product_type="Rice",
             weight_ton="100", container_count="4", price_per_ton="500"),
        dict(product_type="Sugar", weight_ton="50", container_count="2"),
        dict(product_type="Tea", weight_ton="1800-1200"),
    ))
    assert len(shipments) == 1
    s = shipments[0]
    assert [l.product_text for l in s.product_lines] == ["Rice", "Sugar", "Tea"]
    assert s.total_containers == 6
    assert s.total_weight == pytest.approx(1950.0)
    assert s.primary_product == "Rice"


def test_leading_product_rows_are_dropped():
    shipments = group_shipments(rows(
        dict(product_type="Orphan"),
        dict(status="وصل", bl_no="BL-1"),
    ))
    assert len(shipments) == 1
    assert shipments[0].product_lines == []


def test_shipment_fields_are_normalised():
    s = group_shipments(rows(dict(
        status="أبحر", bl_no="BL-5", contract_no="CT-5", pol=" Mumbai ",
        eta="2025/03/10", total_value="$ 1,234.50", paid_value="-",
        free_time="14 days", notes="late docs", delay_status="5 days",
        final_destination="Jeddah Warehouse",
    )))[0]
    assert s.status == "sailed"
    assert s.pol == "Mumbai"
    assert s.eta == "2025-03-10"
    assert s.total_value_usd == pytest.approx(1234.5)
    assert s.paid_value_usd == 0.0
    assert s.free_time_days == 14
    assert s.notes == "late docs | حالة التأخير: 5 days"
    assert s.final_destination == "Jeddah Warehouse"


def test_sn_priority_bl_then_contract_then_invoice_then_generated():
    shipments = group_shipments(rows(
        dict(status="أبحر", bl_no="BL-1", contract_no="CT-1", invoice_no="INV-1"),
        dict(status="أبحر", contract_no="CT-2", invoice_no="INV-2"),
        dict(status="أبحر", invoice_no="INV-3"),
        dict(status="أبحر"),
        dict(status="أبحر"),
    ))
    assert [s.sn for s in shipments] == ["BL-1", "CT-2", "INV-3", "AUTO-0001", "AUTO-0002"]


def test_colliding_keys_stay_unique():
    shipments = group_shipments(rows(
        dict(status="أبحر", bl_no="BL-1", contract_no="CT-1"),
        dict(status="أبحر", bl_no="BL-1", contract_no="CT-2"),
        dict(status="أبحر", bl_no="BL-1", contract_no="CT-2"),
        dict(status="أبحر", contract_no="CT-1"),
        dict(status="أبحر", contract_no="CT-1"),
    ))
    sns = [s.sn for s in shipments]
    assert sns == ["BL-1", "BL-1-CT-2", "BL-1-CT-2-1", "CT-1", "CT-1-1"]
    assert len(set(sns)) == len(sns)


def test_grouping_is_deterministic():
    data = rows(
        dict(status="أبحر", contract_no="CT-1", product_type="Rice"),
        dict(product_type="Sugar"),
        dict(status="وصل", contract_no="CT-1"),
        dict(status="تخطيط"),
    )
    first = [(s.sn, len(s.product_lines)) for s in group_shipments(data)]
    second = [(s.sn, len(s.product_lines)) for s in group_shipments(data)]
    assert first == second == [("CT-1", 2), ("CT-1-1", 0), ("AUTO-0001", 0)]


def test_example_row_under_labelled_header():
    parsed = parse_csv_text(LABELED_HEADER + "\n" + EXAMPLE_ROW + "\n", TWO_FILE_LAYOUT)
    s = group_shipments(parsed)[0]
    assert s.sn == "BL-777"
    assert s.status == "sailed"
    assert s.eta == "2025-03-10"
    assert s.total_containers == 500
    assert s.price_per_ton == 12500
    assert s.total_value_usd == 6200000
    assert s.paid_value_usd == 3000000
    assert s.customs_clearance_date == "2025-03-20"
    assert s.deposit_date == "2025-02-01"
    assert s.bl_date == "2025-03-15"
    assert s.vessel_name == "Vessel X"
    assert s.shipping_line == "MSC"
    assert s.final_beneficiary_name == "Al Noor Trading"
    assert s.notes == "none"


# ── Contracts ─────────────────────────────────────────────────────────

def test_contract_rows_group_with_continuations():
    contracts = group_contracts(rows(
        dict(supplier_name="Acme", contract_no="CT-1", pol="Mumbai",
             product_type="Rice", weight_ton="100"),
        dict(product_type="Sugar", weight_ton="50"),
        dict(supplier_name="Beta", contract_no="CT-2", total_value="9000"),
    ))
    assert [c.contract_no for c in contracts] == ["CT-1", "CT-2"]
    assert len(contracts[0].product_lines) == 2
    assert contracts[0].total_weight == pytest.approx(150.0)
    assert contracts[1].total_value == 9000
    assert all(c.status == PENDING for c in contracts)


def test_supplier_value_and_product_without_pol_starts_a_contract():
    row = RawRow(supplier_name="Beta", total_value="9000", product_type="Tea")
    assert classify_contract_row(row, GroupState.ACCUMULATING_PRODUCT_LINES) is RowAction.START

    contracts = group_contracts(rows(
        dict(supplier_name="Acme", contract_no="CT-1", pol="Mumbai", product_type="Rice"),
        dict(supplier_name="Beta", contract_no="CT-2", total_value="9000", product_type="Tea"),
    ))
    assert [c.contract_no for c in contracts] == ["CT-1", "CT-2"]
    assert [l.product_text for l in contracts[1].product_lines] == ["Tea"]


def test_contract_numbers_fall_back_and_dedupe():
    contracts = group_contracts(rows(
        dict(supplier_name="Acme", contract_no="CT-1", pol="Mumbai"),
        dict(supplier_name="Acme", contract_no="CT-1", pol="Mumbai"),
        dict(supplier_name="Acme", invoice_no="PI-9", pol="Mumbai"),
        dict(supplier_name="Acme", pol="Mumbai"),
    ), status=ACTIVE)
    assert [c.contract_no for c in contracts] == ["CT-1", "CT-1-1", "PI-9", "ACTIVE-0001"]


# ── Helpers ───────────────────────────────────────────────────────────

def test_combine_notes():
    assert combine_notes("", "") == ""
    assert combine_notes("note", "") == "note"
    assert combine_notes("", "late") == "حالة التأخير: late"
    assert combine_notes("note", "late") == "note | حالة التأخير: late"


def test_key_allocator():
    keys = KeyAllocator("AUTO")
    assert keys.allocate("A") == "A"
    assert "A" in keys
    assert keys.allocate("A") == "A-1"
    assert keys.allocate("A", contract_no="A") == "A-2"
    assert keys.fallback() == "AUTO-0001"
