"""
services.finance_service - Payment transactions and customs-clearing placeholders.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Optional

from sqlalchemy.orm import Session

import config
from db.models import CustomsClearingCost, FinanceTransaction
from services.shipment_service import as_date

if TYPE_CHECKING:
    from trade_import.records import ParsedShipment

logger = logging.getLogger(__name__)


class FinanceService:

    @staticmethod
    def needs_transaction(shipment: "ParsedShipment") -> bool:
        return bool(shipment.paid_value_usd and shipment.paid_value_usd > 0)

    @staticmethod
    def needs_customs_cost(shipment: "ParsedShipment") -> bool:
        return bool(shipment.customs_clearance_date)

    @staticmethod
    def record_payment(session: Session, shipment: "ParsedShipment", shipment_id,
                       contract_id, today: Optional[date] = None) -> Optional[FinanceTransaction]:
        """
        One outgoing bank transfer for the amount already paid.
        Dated on the deposit date, or today when the file has none.
        """
        if not FinanceService.needs_transaction(shipment):
            return None

        product = shipment.primary_product or "goods"
        txn = FinanceTransaction(
            transaction_date=as_date(shipment.deposit_date) or today or date.today(),
            amount_usd=shipment.paid_value_usd,
            currency=config.DEFAULT_CURRENCY,
            transaction_type="bank_transfer",
            direction="out",
            fund_source="Import Payment",
            party_name=shipment.supplier_name or shipment.final_beneficiary_name or "Supplier",
            description=f"Payment for {shipment.sn} - {product}",
            shipment_id=shipment_id,
            contract_id=contract_id,
        )
        session.add(txn)
        session.flush()
        logger.debug("payment %.2f recorded for %s", shipment.paid_value_usd, shipment.sn)
        return txn

    @staticmethod
    def record_customs_placeholder(session: Session, shipment: "ParsedShipment",
                                   shipment_id) -> Optional[CustomsClearingCost]:
        """Inbound clearance record with zero cost, to be priced later."""
        if not FinanceService.needs_customs_cost(shipment):
            return None

        product = shipment.primary_product or "goods"
        cost = CustomsClearingCost(
            file_number=shipment.bl_no or shipment.contract_no or shipment.sn,
            shipment_id=shipment_id,
            transaction_description=f"Import clearance for {product}",
            bol_number=shipment.bl_no or None,
            clearance_type="inbound",
            total_clearing_cost=0,
            payment_status="pending",
            notes=f"Clearance date: {shipment.customs_clearance_date}. Cost to be entered.",
        )
        session.add(cost)
        session.flush()
        return cost
