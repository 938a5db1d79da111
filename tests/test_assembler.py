import pytest

from trade_import.assembler import (
    contract_from_shipment, contracts_for_unmatched_shipments,
    merge_contracts_from_shipments, recompute_totals,
)
from trade_import.csv_parser import parse_csv_text
from trade_import.field_map import TWO_FILE_LAYOUT
from trade_import.plan import build_plan
from trade_import.records import ACTIVE, ParsedContract, ParsedShipment, ProductLine
from tests.csvdata import SHIPMENT_ROWS, export, line


def shipment(sn, contract_no="", lines=(), **kw):
    s = ParsedShipment(sn=sn, contract_no=contract_no, **kw)
    for text, weight in lines:
        s.add_line(ProductLine(product_text=text, weight_ton=weight, container_count=1))
    return s


def test_contract_from_shipment_copies_route_and_lines():
    s = shipment("BL-1", "CT-1", [("Rice", 10.0)], supplier_name="Acme",
                 pol="Mumbai", pod="Jeddah", total_value_usd=500.0, paid_value_usd=100.0)
    c = contract_from_shipment(s)
    assert c.contract_no == "CT-1"
    assert c.status == ACTIVE
    assert c.from_shipment
    assert (c.supplier_name, c.pol, c.pod) == ("Acme", "Mumbai", "Jeddah")
    assert (c.total_value, c.paid_value) == (500.0, 100.0)
    assert c.shipment_ids == ["BL-1"]
    assert c.total_weight == 10.0

    # Lines are copies, not shared
    c.product_lines[0].weight_ton = 99.0
    assert s.product_lines[0].weight_ton == 10.0


def test_contract_number_falls_back_to_invoice_then_sn():
    assert contract_from_shipment(shipment("BL-1", invoice_no="PI-1")).contract_no == "PI-1"
    assert contract_from_shipment(shipment("BL-2")).contract_no == "BL-2"


def test_auto_contracts_only_for_undeclared_numbers():
    pending = [ParsedContract(contract_no="CT-1")]
    shipments = [
        shipment("BL-1", "CT-1"),
        shipment("BL-2", "CT-2"),
        shipment("BL-3", "ct-2"),
        shipment("BL-4", ""),
        shipment("BL-5", "ct-1"),
    ]
    auto = contracts_for_unmatched_shipments(shipments, pending)
    assert [c.contract_no for c in auto] == ["CT-2"]
    assert auto[0].shipment_ids == ["BL-2", "BL-3"]


def test_legacy_merge_folds_shipments_per_contract():
    shipments = [
        shipment("BL-1", "CT-9", [("Rice", 10.0)], total_value_usd=100.0),
        shipment("BL-2", "CT-9", [("Rice", 5.0), ("Tea", 2.0)], total_value_usd=50.0),
        shipment("BL-3", "CT-8", [("Sugar", 1.0)]),
        shipment("BL-4"),
    ]
    merged = merge_contracts_from_shipments(shipments)
    assert [c.contract_no for c in merged] == ["CT-9", "CT-8"]

    ct9 = merged[0]
    assert [(l.product_text, l.weight_ton) for l in ct9.product_lines] == [("Rice", 15.0), ("Tea", 2.0)]
    assert ct9.product_lines[0].container_count == 2
    assert ct9.total_value == pytest.approx(150.0)
    assert ct9.total_weight == pytest.approx(17.0)
    assert ct9.total_containers == 3
    assert ct9.shipment_ids == ["BL-1", "BL-2"]

    # Source shipments untouched
    assert shipments[0].product_lines[0].weight_ton == 10.0


def test_recompute_totals_resets_sums():
    c = ParsedContract(contract_no="CT-1", total_weight=999.0, total_containers=99,
                       product_lines=[ProductLine("Rice", 3.0, None, 2), ProductLine("Tea")])
    recompute_totals(c)
    assert c.total_weight == 3.0
    assert c.total_containers == 2


def test_built_plan_shipment_totals_match_their_lines():
    rows = parse_csv_text(export(
        SHIPMENT_ROWS[0],
        line(product_type="Beans", container_count="2", weight_ton="30"),
        SHIPMENT_ROWS[1],
    ), TWO_FILE_LAYOUT)
    plan = build_plan(rows, [])

    bl1, bl2 = plan.shipments
    assert [l.product_text for l in bl1.product_lines] == ["Rice", "Beans"]
    assert (bl1.total_containers, bl1.total_weight) == (6, 130)
    assert (bl2.total_containers, bl2.total_weight) == (0, 20)
