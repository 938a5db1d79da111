"""
services.master_data_service - Ports and companies: lookup and find-or-create.

The resolver never queries per row.  load_lookups() reads every live
port and company once into plain dicts keyed by lower-cased name; the
resolver matches against those and registers anything it inserts so the
next row with the same name reuses the id.

Matching order for a name:
  1. exact (case-insensitive) match in the kind's lookup
  2. substring match either way ("Maersk" ~ "Maersk Line")
  3. suppliers only: exact match in *all* companies promotes that
     company to supplier instead of creating a duplicate
  4. insert a new row with the kind's role flag
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from db.models import Company, Contract, Port

if TYPE_CHECKING:
    from trade_import.report import ImportStats

logger = logging.getLogger(__name__)


class Kind(enum.Enum):
    PORT = "port"
    SHIPPING_LINE = "shipping_line"
    SUPPLIER = "supplier"
    BENEFICIARY = "beneficiary"


def normalize_name(name: str) -> str:
    return (name or "").strip().lower()


@dataclass
class Lookups:
    """Name → id tables for one import run."""

    ports: dict[str, uuid.UUID] = field(default_factory=dict)
    shipping_companies: dict[str, uuid.UUID] = field(default_factory=dict)
    supplier_companies: dict[str, uuid.UUID] = field(default_factory=dict)
    companies: dict[str, uuid.UUID] = field(default_factory=dict)
    contracts: dict[str, uuid.UUID] = field(default_factory=dict)

    def table_for(self, kind: Kind) -> dict:
        if kind is Kind.PORT:
            return self.ports
        if kind is Kind.SHIPPING_LINE:
            return self.shipping_companies
        if kind is Kind.SUPPLIER:
            return self.supplier_companies
        return self.companies

    def register(self, kind: Kind, name: str, entity_id) -> None:
        key = normalize_name(name)
        if not key:
            return
        self.table_for(kind)[key] = entity_id
        if kind is not Kind.PORT:
            self.companies.setdefault(key, entity_id)

    def copy(self) -> "Lookups":
        return Lookups(
            ports=dict(self.ports),
            shipping_companies=dict(self.shipping_companies),
            supplier_companies=dict(self.supplier_companies),
            companies=dict(self.companies),
            contracts=dict(self.contracts),
        )


def load_lookups(session: Session) -> Lookups:
    """Read every live port, company and contract into a Lookups."""
    lookups = Lookups()

    ports = session.execute(
        select(Port.id, Port.name, Port.country)
        .where(Port.is_deleted.is_(False))
        .order_by(Port.created_at, Port.name)
    ).all()
    for port_id, name, _country in ports:
        if normalize_name(name):
            lookups.ports.setdefault(normalize_name(name), port_id)
    # Country keys never shadow a port name.
    for port_id, _name, country in ports:
        if normalize_name(country):
            lookups.ports.setdefault(normalize_name(country), port_id)

    companies = session.execute(
        select(Company.id, Company.name, Company.is_supplier, Company.is_shipping_line)
        .where(Company.is_deleted.is_(False))
        .order_by(Company.created_at, Company.name)
    ).all()
    for company_id, name, is_supplier, is_shipping_line in companies:
        key = normalize_name(name)
        if not key:
            continue
        lookups.companies.setdefault(key, company_id)
        if is_supplier:
            lookups.supplier_companies.setdefault(key, company_id)
        if is_shipping_line:
            lookups.shipping_companies.setdefault(key, company_id)

    for contract_id, contract_no in session.execute(
        select(Contract.id, Contract.contract_no).where(Contract.is_deleted.is_(False))
    ):
        lookups.contracts[normalize_name(contract_no)] = contract_id

    logger.info(
        "lookups loaded: %d port keys, %d shipping lines, %d suppliers, %d companies, %d contracts",
        len(lookups.ports), len(lookups.shipping_companies),
        len(lookups.supplier_companies), len(lookups.companies), len(lookups.contracts),
    )
    return lookups


def find(kind: Kind, name: str, lookups: Lookups):
    """Exact, then substring match.  Pure: reads the lookups only."""
    key = normalize_name(name)
    if not key:
        return None

    table = lookups.table_for(kind)
    if key in table:
        return table[key]
    for existing, entity_id in table.items():
        if existing and (existing in key or key in existing):
            return entity_id
    return None


class MasterDataResolver:
    """Find-or-create against one session, one Lookups and one ImportStats."""

    def __init__(self, session: Session, lookups: Lookups, stats: "ImportStats"):
        self.session = session
        self.lookups = lookups
        self.stats = stats

    def find_or_create(self, kind: Kind, name: str):
        """Return the id for ``name``; blank names resolve to None."""
        if not normalize_name(name):
            return None
        name = name.strip()

        found = find(kind, name, self.lookups)
        if found is not None:
            return found

        if kind is Kind.SUPPLIER:
            promoted = self._promote_supplier(name)
            if promoted is not None:
                return promoted

        if kind is Kind.PORT:
            return self._create_port(name)
        return self._create_company(kind, name)

    # ── Inserts ────────────────────────────────────────────────────────

    def _create_port(self, name: str):
        port = Port(name=name, country=name)
        self.session.add(port)
        self.session.flush()
        self.lookups.register(Kind.PORT, name, port.id)
        self.stats.ports_created += 1
        logger.info("created port %r", name)
        return port.id

    def _create_company(self, kind: Kind, name: str):
        company = Company(
            name=name,
            is_supplier=kind is Kind.SUPPLIER,
            is_shipping_line=kind is Kind.SHIPPING_LINE,
            is_customer=kind is Kind.BENEFICIARY,
        )
        self.session.add(company)
        self.session.flush()
        self.lookups.register(kind, name, company.id)

        if kind is Kind.SUPPLIER:
            self.stats.supplier_companies_created += 1
        elif kind is Kind.SHIPPING_LINE:
            self.stats.shipping_companies_created += 1
        else:
            self.stats.beneficiary_companies_created += 1
        logger.info("created %s company %r", kind.value, name)
        return company.id

    def _promote_supplier(self, name: str) -> Optional[uuid.UUID]:
        existing = self.lookups.companies.get(normalize_name(name))
        if existing is None:
            return None
        self.session.execute(
            update(Company).where(Company.id == existing).values(is_supplier=True)
        )
        self.lookups.supplier_companies[normalize_name(name)] = existing
        logger.info("marked existing company %r as supplier", name)
        return existing
