"""
services.contract_service - Insert one contract aggregate.

A contract is a header row plus its satellites, written in FK order:
contracts → contract_parties → contract_shipping → contract_terms →
contract_products → contract_lines.  Session management is the
caller's responsibility.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

import config
from db.models import (
    Contract, ContractLine, ContractParty, ContractProducts, ContractShipping,
    ContractTerms,
)
from services.master_data_service import Kind, MasterDataResolver, normalize_name

if TYPE_CHECKING:
    from trade_import.records import ParsedContract
    from trade_import.report import ImportStats

logger = logging.getLogger(__name__)


class ContractService:

    @staticmethod
    def insert(session: Session, contract: "ParsedContract",
               resolver: MasterDataResolver,
               created_by: str = config.CREATED_BY):
        """Write ``contract`` and return the new contract id."""
        stats: "ImportStats" = resolver.stats
        supplier_id = resolver.find_or_create(Kind.SUPPLIER, contract.supplier_name)
        pol_id = resolver.find_or_create(Kind.PORT, contract.pol)
        pod_id = resolver.find_or_create(Kind.PORT, contract.pod)

        row = Contract(
            contract_no=contract.contract_no,
            status=contract.status,
            direction=config.DEFAULT_DIRECTION,
            created_by=created_by,
        )
        session.add(row)
        session.flush()

        session.add(ContractParty(
            contract_id=row.id,
            proforma_number=contract.invoice_no or None,
            exporter_company_id=supplier_id,
        ))
        session.add(ContractShipping(
            contract_id=row.id,
            port_of_loading_id=pol_id,
            final_destination_id=pod_id,
        ))
        session.add(ContractTerms(
            contract_id=row.id,
            cargo_type="containers",
            container_count=contract.total_containers or None,
            weight_ton=contract.total_weight or None,
            currency_code=config.DEFAULT_CURRENCY,
        ))
        session.add(ContractProducts(contract_id=row.id))

        for line in contract.product_lines:
            session.add(ContractLine(
                contract_id=row.id,
                product_name=line.product_text,
                type_of_goods=line.product_text,
                quantity_mt=line.weight_ton,
                rate_usd_per_mt=line.price_per_ton,
                unit_price=line.price_per_ton,
            ))
            stats.contract_lines_created += 1
        session.flush()

        resolver.lookups.contracts[normalize_name(contract.contract_no)] = row.id
        if contract.from_shipment:
            stats.contracts_from_shipments += 1
        else:
            stats.contracts_created += 1

        logger.debug("contract %s inserted (%s, %d lines)",
                     contract.contract_no, contract.status, len(contract.product_lines))
        return row.id
