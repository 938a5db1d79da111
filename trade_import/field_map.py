"""
trade_import.field_map - Column layouts and header labels.

Two positional layouts exist:

  TWO_FILE_LAYOUT  29 columns, used by the contracts file and the
                   shipments file of the two-file import.
  LEGACY_LAYOUT    28 columns, the older combined export without the
                   supplier column.

HEADER_LABELS maps normalised header text to a field name.  When a
file's header resolves to enough known labels the columns are taken
from the header instead of from the positional layout.
"""

from __future__ import annotations

import re

LEGACY_LAYOUT: tuple[str, ...] = (
    "row_num", "contract_no", "invoice_no", "status", "product_type", "subject",
    "container_count", "weight_ton", "price_per_ton", "total_value", "paid_value",
    "balance", "pol", "pod", "eta", "free_time", "customs_clearance_date",
    "delay_status", "documents", "shipping_company", "tracking", "bl_no",
    "down_payment_date", "contract_ship_date", "bl_date", "final_beneficiary",
    "final_destination", "notes",
)

# Supplier column sits at position 2
TWO_FILE_LAYOUT: tuple[str, ...] = (
    LEGACY_LAYOUT[:1] + ("supplier_name",) + LEGACY_LAYOUT[1:]
)

RAW_FIELDS: tuple[str, ...] = TWO_FILE_LAYOUT

# Substrings that identify the header row
HEADER_MARKERS = ("رقم", "المورد")

# Caption lines some exports carry above the header
TITLE_LINES = re.compile(r"^(Shipments|Contracts|Table\s+\d+)$", re.IGNORECASE)


def normalize_label(label: str) -> str:
    """Collapse whitespace (headers wrap inside cells) and lower-case."""
    return re.sub(r"\s+", " ", label.replace("\ufeff", "")).strip().lower()


# Header text (normalised) → RawRow field
HEADER_LABELS: dict[str, str] = {
    normalize_label(k): v for k, v in {
        "رقم":                     "row_num",
        "#":                       "row_num",
        "المورد":                  "supplier_name",
        "supplier":                "supplier_name",
        "رقم العقد":               "contract_no",
        "contract no":             "contract_no",
        "رقم الفاتورة":            "invoice_no",
        "invoice no":              "invoice_no",
        "الحالة":                  "status",
        "status":                  "status",
        "نوع البضاعة":             "product_type",
        "product":                 "product_type",
        "موضوع الشحنة":            "subject",
        "subject":                 "subject",
        "عدد الحاويات":            "container_count",
        "containers":              "container_count",
        "الوزن (طن)":              "weight_ton",
        "weight (ton)":            "weight_ton",
        "التثبيت $/ طن":           "price_per_ton",
        "price $/ton":             "price_per_ton",
        "الإجمالي":                "total_value",
        "total":                   "total_value",
        "المدفوع":                 "paid_value",
        "paid":                    "paid_value",
        "الرصيد":                  "balance",
        "balance":                 "balance",
        "pol":                     "pol",
        "pod":                     "pod",
        "eta":                     "eta",
        "free time":               "free_time",
        "تاريخ التخليص الجمركي":    "customs_clearance_date",
        "customs clearance date":  "customs_clearance_date",
        "حالة التأخير":            "delay_status",
        "delay status":            "delay_status",
        "الأوراق":                 "documents",
        "documents":               "documents",
        "شركة الشحن":              "shipping_company",
        "shipping line":           "shipping_company",
        "التعقب":                  "tracking",
        "vessel":                  "tracking",
        "رقم البوليصة":            "bl_no",
        "b/l no":                  "bl_no",
        "تاريخ الرعبون":           "down_payment_date",
        "deposit date":            "down_payment_date",
        "تاريخ الشحن حسب العقد":    "contract_ship_date",
        "contract ship date":      "contract_ship_date",
        "تاريخ البوليصة":          "bl_date",
        "b/l date":                "bl_date",
        "المالك الفعلي":           "final_beneficiary",
        "final beneficiary":       "final_beneficiary",
        "الوجهة النهائية":         "final_destination",
        "final destination":       "final_destination",
        "ملاحظة":                  "notes",
        "notes":                   "notes",
    }.items()
}
