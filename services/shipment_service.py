"""
services.shipment_service - Insert one shipment aggregate.

Write order: shipments → shipment_parties → shipment_cargo →
shipment_lines → shipment_logistics → shipment_financials →
shipment_documents.  Dates arrive as ISO strings from the aggregator
and are converted here, at the database boundary.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy.orm import Session

import config
from db.models import (
    Shipment, ShipmentCargo, ShipmentDocuments, ShipmentFinancials,
    ShipmentLine, ShipmentLogistics, ShipmentParty,
)
from services.master_data_service import Kind, MasterDataResolver

if TYPE_CHECKING:
    from trade_import.records import ParsedShipment

logger = logging.getLogger(__name__)


def as_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


class ShipmentService:

    @staticmethod
    def insert(session: Session, shipment: "ParsedShipment", contract_id,
               resolver: MasterDataResolver,
               created_by: str = config.CREATED_BY):
        """Write ``shipment`` (linked to ``contract_id``, may be None) and return its id."""
        stats = resolver.stats
        supplier_id = resolver.find_or_create(Kind.SUPPLIER, shipment.supplier_name)
        shipping_line_id = resolver.find_or_create(Kind.SHIPPING_LINE, shipment.shipping_line)
        beneficiary_id = resolver.find_or_create(Kind.BENEFICIARY, shipment.final_beneficiary_name)
        pol_id = resolver.find_or_create(Kind.PORT, shipment.pol)
        pod_id = resolver.find_or_create(Kind.PORT, shipment.pod)

        row = Shipment(
            sn=shipment.sn,
            transaction_type=config.DEFAULT_DIRECTION,
            status=shipment.status,
            subject=shipment.subject or None,
            notes=shipment.notes or None,
            paperwork_status=shipment.paperwork_status or None,
            contract_id=contract_id,
            created_by=created_by,
        )
        session.add(row)
        session.flush()

        session.add(ShipmentParty(
            shipment_id=row.id,
            supplier_id=supplier_id,
            shipping_line_id=shipping_line_id,
            final_beneficiary_name=shipment.final_beneficiary_name or None,
            final_beneficiary_company_id=beneficiary_id,
        ))

        session.add(ShipmentCargo(
            shipment_id=row.id,
            product_text=shipment.primary_product,
            cargo_type=shipment.cargo_type,
            container_count=shipment.total_containers or None,
            weight_ton=shipment.total_weight or None,
            weight_unit="tons",
        ))
        for line in shipment.product_lines:
            session.add(ShipmentLine(
                shipment_id=row.id,
                product_name=line.product_text,
                type_of_goods=line.product_text,
                quantity_mt=line.weight_ton,
                rate_usd_per_mt=line.price_per_ton,
                unit_price=line.price_per_ton,
                uom="MT",
            ))
            stats.shipment_lines_created += 1

        destination = shipment.final_destination
        session.add(ShipmentLogistics(
            shipment_id=row.id,
            pol_id=pol_id,
            pod_id=pod_id,
            eta=as_date(shipment.eta),
            free_time_days=shipment.free_time_days,
            customs_clearance_date=as_date(shipment.customs_clearance_date),
            bl_no=shipment.bl_no or None,
            vessel_name=shipment.vessel_name or None,
            contract_ship_date=as_date(shipment.contract_ship_date),
            bl_date=as_date(shipment.bl_date),
            deposit_date=as_date(shipment.deposit_date),
            has_final_destination=bool(destination),
            final_destination={"name": destination} if destination else {},
            incoterms=config.DEFAULT_INCOTERMS,
        ))

        session.add(ShipmentFinancials(
            shipment_id=row.id,
            fixed_price_usd_per_ton=shipment.price_per_ton,
            total_value_usd=shipment.total_value_usd,
            paid_value_usd=shipment.paid_value_usd,
            balance_value_usd=shipment.balance_value_usd,
            payment_method=config.DEFAULT_PAYMENT_METHOD,
        ))
        session.add(ShipmentDocuments(shipment_id=row.id))
        session.flush()

        stats.shipments_created += 1
        logger.debug("shipment %s inserted (%d lines, contract=%s)",
                     shipment.sn, len(shipment.product_lines), contract_id)
        return row.id
