"""
db.models - SQLAlchemy ORM declarations.

Schemas
-------
master_data  - ports and companies.  Companies carry boolean role flags
               (is_supplier / is_shipping_line / is_customer) instead of
               one table per role, so a supplier can later turn up as a
               final beneficiary without a duplicate row.
logistics    - contracts and shipments, each split into a header row plus
               1:1 satellite tables (parties, shipping/logistics, terms,
               financials, documents) and 1:n line tables.
finance      - payment transactions and customs-clearing cost records.

Only the columns the importer reads or writes are declared here; the
owning application may carry more.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer,
    String, Text, Uuid,
)
from sqlalchemy.orm import DeclarativeBase, relationship

SCHEMAS = ("master_data", "logistics", "finance")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


# ══════════════════════════════════════════════════════════════════════
#  master_data
# ══════════════════════════════════════════════════════════════════════

class Port(Base):
    __tablename__ = "ports"
    __table_args__ = {"schema": "master_data"}

    id         = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name       = Column(String(200), nullable=False, index=True)
    country    = Column(String(200), default="")
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=_utcnow)


class Company(Base):
    __tablename__ = "companies"
    __table_args__ = {"schema": "master_data"}

    id               = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name             = Column(String(300), nullable=False, index=True)

    # ── Role flags ─────────────────────────────────────────────────────
    is_supplier      = Column(Boolean, nullable=False, default=False)
    is_shipping_line = Column(Boolean, nullable=False, default=False)
    is_customer      = Column(Boolean, nullable=False, default=False)

    is_deleted       = Column(Boolean, nullable=False, default=False)
    created_at       = Column(DateTime, default=_utcnow)


# ══════════════════════════════════════════════════════════════════════
#  logistics - contracts
# ══════════════════════════════════════════════════════════════════════

class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = {"schema": "logistics"}

    id          = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contract_no = Column(String(120), nullable=False, unique=True)
    status      = Column(String(30), nullable=False, default="PENDING")
    direction   = Column(String(30), default="incoming")
    created_by  = Column(String(100), default="")
    is_deleted  = Column(Boolean, nullable=False, default=False)
    created_at  = Column(DateTime, default=_utcnow)

    lines = relationship(
        "ContractLine", back_populates="contract",
        cascade="all, delete-orphan", lazy="selectin",
    )


class ContractParty(Base):
    __tablename__ = "contract_parties"
    __table_args__ = {"schema": "logistics"}

    id                  = Column(Integer, primary_key=True, autoincrement=True)
    contract_id         = Column(Uuid, ForeignKey("logistics.contracts.id"),
                                 nullable=False, index=True)
    proforma_number     = Column(String(120))
    exporter_company_id = Column(Uuid, ForeignKey("master_data.companies.id"))


class ContractShipping(Base):
    __tablename__ = "contract_shipping"
    __table_args__ = {"schema": "logistics"}

    id                   = Column(Integer, primary_key=True, autoincrement=True)
    contract_id          = Column(Uuid, ForeignKey("logistics.contracts.id"),
                                  nullable=False, index=True)
    port_of_loading_id   = Column(Uuid, ForeignKey("master_data.ports.id"))
    final_destination_id = Column(Uuid, ForeignKey("master_data.ports.id"))


class ContractTerms(Base):
    __tablename__ = "contract_terms"
    __table_args__ = {"schema": "logistics"}

    id              = Column(Integer, primary_key=True, autoincrement=True)
    contract_id     = Column(Uuid, ForeignKey("logistics.contracts.id"),
                             nullable=False, index=True)
    cargo_type      = Column(String(50))
    container_count = Column(Integer)
    weight_ton      = Column(Float)
    currency_code   = Column(String(3))


class ContractProducts(Base):
    """Placeholder row; banking/product details are filled in by the app."""
    __tablename__ = "contract_products"
    __table_args__ = {"schema": "logistics"}

    id          = Column(Integer, primary_key=True, autoincrement=True)
    contract_id = Column(Uuid, ForeignKey("logistics.contracts.id"),
                         nullable=False, index=True)


class ContractLine(Base):
    __tablename__ = "contract_lines"
    __table_args__ = {"schema": "logistics"}

    id              = Column(Integer, primary_key=True, autoincrement=True)
    contract_id     = Column(Uuid, ForeignKey("logistics.contracts.id"),
                             nullable=False, index=True)
    product_name    = Column(Text, default="")
    type_of_goods   = Column(Text, default="")
    quantity_mt     = Column(Float)
    rate_usd_per_mt = Column(Float)
    unit_price      = Column(Float)

    contract = relationship("Contract", back_populates="lines")


# ══════════════════════════════════════════════════════════════════════
#  logistics - shipments
# ══════════════════════════════════════════════════════════════════════

class Shipment(Base):
    __tablename__ = "shipments"
    __table_args__ = {"schema": "logistics"}

    id               = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sn               = Column(String(120), nullable=False, unique=True)
    transaction_type = Column(String(30), default="incoming")
    status           = Column(String(30), nullable=False, default="planning")
    subject          = Column(Text)
    notes            = Column(Text)
    paperwork_status = Column(Text)
    contract_id      = Column(Uuid, ForeignKey("logistics.contracts.id"), index=True)
    created_by       = Column(String(100), default="")
    is_deleted       = Column(Boolean, nullable=False, default=False)
    created_at       = Column(DateTime, default=_utcnow)

    lines = relationship(
        "ShipmentLine", back_populates="shipment",
        cascade="all, delete-orphan", lazy="selectin",
    )


class ShipmentParty(Base):
    __tablename__ = "shipment_parties"
    __table_args__ = {"schema": "logistics"}

    id                           = Column(Integer, primary_key=True, autoincrement=True)
    shipment_id                  = Column(Uuid, ForeignKey("logistics.shipments.id"),
                                          nullable=False, index=True)
    supplier_id                  = Column(Uuid, ForeignKey("master_data.companies.id"))
    shipping_line_id             = Column(Uuid, ForeignKey("master_data.companies.id"))
    final_beneficiary_name       = Column(String(300))
    final_beneficiary_company_id = Column(Uuid, ForeignKey("master_data.companies.id"))


class ShipmentCargo(Base):
    __tablename__ = "shipment_cargo"
    __table_args__ = {"schema": "logistics"}

    id              = Column(Integer, primary_key=True, autoincrement=True)
    shipment_id     = Column(Uuid, ForeignKey("logistics.shipments.id"),
                             nullable=False, index=True)
    product_text    = Column(Text, default="")
    cargo_type      = Column(String(50))
    container_count = Column(Integer)
    weight_ton      = Column(Float)
    weight_unit     = Column(String(20))


class ShipmentLine(Base):
    __tablename__ = "shipment_lines"
    __table_args__ = {"schema": "logistics"}

    id              = Column(Integer, primary_key=True, autoincrement=True)
    shipment_id     = Column(Uuid, ForeignKey("logistics.shipments.id"),
                             nullable=False, index=True)
    product_name    = Column(Text, default="")
    type_of_goods   = Column(Text, default="")
    quantity_mt     = Column(Float)
    rate_usd_per_mt = Column(Float)
    unit_price      = Column(Float)
    uom             = Column(String(10), default="MT")

    shipment = relationship("Shipment", back_populates="lines")


class ShipmentLogistics(Base):
    __tablename__ = "shipment_logistics"
    __table_args__ = {"schema": "logistics"}

    id                     = Column(Integer, primary_key=True, autoincrement=True)
    shipment_id            = Column(Uuid, ForeignKey("logistics.shipments.id"),
                                    nullable=False, index=True)
    pol_id                 = Column(Uuid, ForeignKey("master_data.ports.id"))
    pod_id                 = Column(Uuid, ForeignKey("master_data.ports.id"))
    eta                    = Column(Date)
    free_time_days         = Column(Integer)
    customs_clearance_date = Column(Date)
    bl_no                  = Column(String(120))
    vessel_name            = Column(String(200))
    contract_ship_date     = Column(Date)
    bl_date                = Column(Date)
    deposit_date           = Column(Date)
    has_final_destination  = Column(Boolean, nullable=False, default=False)
    final_destination      = Column(JSON, default=dict)
    incoterms              = Column(String(20))


class ShipmentFinancials(Base):
    __tablename__ = "shipment_financials"
    __table_args__ = {"schema": "logistics"}

    id                      = Column(Integer, primary_key=True, autoincrement=True)
    shipment_id             = Column(Uuid, ForeignKey("logistics.shipments.id"),
                                     nullable=False, index=True)
    fixed_price_usd_per_ton = Column(Float)
    total_value_usd         = Column(Float)
    paid_value_usd          = Column(Float)
    balance_value_usd       = Column(Float)
    payment_method          = Column(String(30))


class ShipmentDocuments(Base):
    """Placeholder row; documents are attached later through the app."""
    __tablename__ = "shipment_documents"
    __table_args__ = {"schema": "logistics"}

    id          = Column(Integer, primary_key=True, autoincrement=True)
    shipment_id = Column(Uuid, ForeignKey("logistics.shipments.id"),
                         nullable=False, index=True)


# ══════════════════════════════════════════════════════════════════════
#  finance
# ══════════════════════════════════════════════════════════════════════

class FinanceTransaction(Base):
    __tablename__ = "transactions"
    __table_args__ = {"schema": "finance"}

    id               = Column(Integer, primary_key=True, autoincrement=True)
    transaction_date = Column(Date, nullable=False)
    amount_usd       = Column(Float, nullable=False)
    currency         = Column(String(3), default="USD")
    transaction_type = Column(String(50))
    direction        = Column(String(10))
    fund_source      = Column(String(100))
    party_name       = Column(String(300))
    description      = Column(Text)
    shipment_id      = Column(Uuid, ForeignKey("logistics.shipments.id"), index=True)
    contract_id      = Column(Uuid, ForeignKey("logistics.contracts.id"), index=True)
    created_at       = Column(DateTime, default=_utcnow)


class CustomsClearingCost(Base):
    __tablename__ = "customs_clearing_costs"
    __table_args__ = {"schema": "finance"}

    id                      = Column(Integer, primary_key=True, autoincrement=True)
    file_number             = Column(String(120), nullable=False)
    shipment_id             = Column(Uuid, ForeignKey("logistics.shipments.id"), index=True)
    transaction_description = Column(Text)
    bol_number              = Column(String(120))
    clearance_type          = Column(String(30))
    total_clearing_cost     = Column(Float, default=0)
    payment_status          = Column(String(30), default="pending")
    notes                   = Column(Text)
    created_at              = Column(DateTime, default=_utcnow)
