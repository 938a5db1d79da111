"""
services.cleanup_service - Clean-slate removal of transactional data.

Deletes every contract, shipment and finance row before a fresh import.
Master data (ports, companies) is kept.  Tables are emptied children
first so foreign keys never block a delete.

Each DELETE runs in its own SAVEPOINT: a table that does not exist in
this deployment is skipped without poisoning the surrounding
transaction (PostgreSQL aborts the whole transaction on any error
otherwise).  Any other failure propagates.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Reverse foreign-key order.  shipment_containers / shipment_batches
# belong to the owning application and are not modelled here.
CLEAR_ORDER = (
    ("finance", "customs_clearing_costs"),
    ("finance", "transactions"),
    ("logistics", "shipment_documents"),
    ("logistics", "shipment_financials"),
    ("logistics", "shipment_logistics"),
    ("logistics", "shipment_lines"),
    ("logistics", "shipment_containers"),
    ("logistics", "shipment_batches"),
    ("logistics", "shipment_cargo"),
    ("logistics", "shipment_parties"),
    ("logistics", "shipments"),
    ("logistics", "contract_lines"),
    ("logistics", "contract_products"),
    ("logistics", "contract_terms"),
    ("logistics", "contract_shipping"),
    ("logistics", "contract_parties"),
    ("logistics", "contracts"),
)

_MISSING_TABLE_MARKERS = ("does not exist", "no such table", "undefinedtable")


def is_missing_table(exc: Exception) -> bool:
    message = str(getattr(exc, "orig", exc)).lower()
    return any(marker in message for marker in _MISSING_TABLE_MARKERS) or (
        type(getattr(exc, "orig", None)).__name__ == "UndefinedTable"
    )


def qualified_name(session: Session, schema: str, table: str) -> str:
    if session.get_bind().dialect.name == "sqlite":
        return table
    return f"{schema}.{table}"


class CleanupService:

    @staticmethod
    def clear_transactional_data(session: Session) -> dict[str, int]:
        """
        Empty the transactional tables.  Returns {table: rows deleted};
        tables missing from the database are left out of the result.
        """
        deleted: dict[str, int] = {}
        for schema, table in CLEAR_ORDER:
            name = qualified_name(session, schema, table)
            try:
                with session.begin_nested():
                    result = session.execute(text(f"DELETE FROM {name}"))
            except DBAPIError as exc:
                if not is_missing_table(exc):
                    raise
                logger.info("skipping %s: table not present", name)
                continue
            deleted[name] = result.rowcount or 0
            logger.info("cleared %s (%d rows)", name, deleted[name])
        return deleted
