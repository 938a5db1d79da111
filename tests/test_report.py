import uuid

from services.master_data_service import Lookups
from trade_import.records import ParsedShipment
from trade_import.plan import ImportPlan
from trade_import.report import (
    ImportStats, count_new_names, render_preview, unique_master_names,
)


def test_stats_start_at_zero_and_render():
    stats = ImportStats()
    assert set(stats.to_dict().values()) == {0}
    stats.shipments_created = 4
    text = stats.render()
    assert "Shipments created: 4" in text
    assert "Skipped invalid records: 0" in text


def test_preview_truncates_long_sections():
    plan = ImportPlan(mode="two-file",
                      shipments=[ParsedShipment(sn=f"BL-{i}") for i in range(20)])
    plan.validate()
    text = render_preview(plan, shipment_limit=15)
    assert "[15] BL-14" in text
    assert "[16]" not in text
    assert "... and 5 more shipments" in text
    assert "Master Data to Create" not in text


def test_preview_lists_records_with_errors():
    plan = ImportPlan(mode="legacy", shipments=[ParsedShipment(sn="")])
    plan.validate()
    text = render_preview(plan)
    assert "RECORDS WITH ERRORS: 1" in text
    assert "(no key): Missing shipment number (sn)" in text


def test_unique_master_names():
    plan = ImportPlan(mode="legacy", shipments=[
        ParsedShipment(sn="A", supplier_name="Acme", pol="Mumbai", pod="Jeddah", shipping_line="MSC"),
        ParsedShipment(sn="B", supplier_name="Acme", pol="Mumbai", pod="", shipping_line=""),
    ])
    names = unique_master_names(plan)
    assert names == {
        "suppliers": {"Acme"},
        "ports": {"Mumbai", "Jeddah"},
        "shipping_lines": {"MSC"},
    }


def test_existing_company_is_not_counted_as_new_supplier():
    lookups = Lookups(companies={"beta trading": uuid.uuid4()})
    plan = ImportPlan(mode="legacy", shipments=[
        ParsedShipment(sn="A", supplier_name="Beta Trading"),
        ParsedShipment(sn="B", supplier_name="Acme"),
    ])
    assert count_new_names(plan, lookups)["suppliers"] == 1
    assert lookups.supplier_companies == {}
