"""
trade_import.records - Typed rows and aggregates.

RawRow is text exactly as it came off the line.  The aggregates are
normalised when the aggregator builds them, so nothing downstream ever
parses cell text again.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Optional

PENDING = "PENDING"
ACTIVE = "ACTIVE"


@dataclass
class RawRow:
    row_num: str = ""
    supplier_name: str = ""
    contract_no: str = ""
    invoice_no: str = ""
    status: str = ""
    product_type: str = ""
    subject: str = ""
    container_count: str = ""
    weight_ton: str = ""
    price_per_ton: str = ""
    total_value: str = ""
    paid_value: str = ""
    balance: str = ""
    pol: str = ""
    pod: str = ""
    eta: str = ""
    free_time: str = ""
    customs_clearance_date: str = ""
    delay_status: str = ""
    documents: str = ""
    shipping_company: str = ""
    tracking: str = ""
    bl_no: str = ""
    down_payment_date: str = ""
    contract_ship_date: str = ""
    bl_date: str = ""
    final_beneficiary: str = ""
    final_destination: str = ""
    notes: str = ""
    line_no: int = 0            # physical line in the source file

    @classmethod
    def from_values(cls, values: list[str], layout: tuple[str, ...],
                    line_no: int = 0) -> "RawRow":
        """Map cells positionally; extra cells are ignored, missing ones stay ''."""
        row = cls(line_no=line_no)
        for name, value in zip(layout, values):
            setattr(row, name, (value or "").strip())
        return row

    @classmethod
    def from_mapping(cls, data: dict[str, str], line_no: int = 0) -> "RawRow":
        known = {f.name for f in fields(cls)} - {"line_no"}
        row = cls(line_no=line_no)
        for name, value in data.items():
            if name in known:
                setattr(row, name, (value or "").strip())
        return row


@dataclass
class ProductLine:
    product_text: str
    weight_ton: Optional[float] = None
    price_per_ton: Optional[float] = None
    container_count: Optional[int] = None


@dataclass
class ParsedShipment:
    sn: str
    contract_no: str = ""
    invoice_no: str = ""
    status: str = "planning"
    subject: str = ""
    notes: str = ""
    paperwork_status: str = ""
    delay_status: str = ""

    # ── Parties (names, resolved to ids at insert time) ───────────────
    supplier_name: str = ""
    shipping_line: str = ""
    final_beneficiary_name: str = ""

    # ── Cargo ──────────────────────────────────────────────────────────
    product_lines: list[ProductLine] = field(default_factory=list)
    cargo_type: str = "containers"
    total_containers: int = 0
    total_weight: float = 0.0

    # ── Logistics ──────────────────────────────────────────────────────
    pol: str = ""
    pod: str = ""
    eta: Optional[str] = None
    free_time_days: Optional[int] = None
    customs_clearance_date: Optional[str] = None
    bl_no: str = ""
    vessel_name: str = ""
    contract_ship_date: Optional[str] = None
    bl_date: Optional[str] = None
    deposit_date: Optional[str] = None
    final_destination: str = ""

    # ── Financials (USD) ───────────────────────────────────────────────
    price_per_ton: Optional[float] = None
    total_value_usd: Optional[float] = None
    paid_value_usd: Optional[float] = None
    balance_value_usd: Optional[float] = None

    line_no: int = 0

    @property
    def key(self) -> str:
        return self.sn

    @property
    def primary_product(self) -> str:
        return self.product_lines[0].product_text if self.product_lines else ""

    def add_line(self, line: ProductLine) -> None:
        self.product_lines.append(line)
        self.total_containers += line.container_count or 0
        self.total_weight += line.weight_ton or 0


@dataclass
class ParsedContract:
    contract_no: str
    invoice_no: str = ""
    status: str = PENDING
    supplier_name: str = ""
    product_lines: list[ProductLine] = field(default_factory=list)
    total_containers: int = 0
    total_weight: float = 0.0
    total_value: Optional[float] = None
    paid_value: Optional[float] = None
    pol: str = ""
    pod: str = ""
    final_beneficiary_name: str = ""
    final_destination: str = ""
    shipment_ids: list[str] = field(default_factory=list)
    line_no: int = 0

    @property
    def key(self) -> str:
        return self.contract_no

    @property
    def from_shipment(self) -> bool:
        return self.status == ACTIVE

    def add_line(self, line: ProductLine) -> None:
        self.product_lines.append(line)
        self.total_containers += line.container_count or 0
        self.total_weight += line.weight_ton or 0
