"""
db - Database layer.

Public API:
    init_db()              → create engine + tables
    get_session()          → new Session
    get_readonly_session() → Session that refuses writes (dry-run)
    Port, Company, Contract*, Shipment*, FinanceTransaction,
    CustomsClearingCost    → ORM models
"""

from db.engine import (                                     # noqa: F401
    init_db,
    get_engine,
    get_session,
    get_readonly_session,
    normalize_db_url,
)
from db.models import (                                     # noqa: F401
    Base,
    Port,
    Company,
    Contract,
    ContractParty,
    ContractShipping,
    ContractTerms,
    ContractProducts,
    ContractLine,
    Shipment,
    ShipmentParty,
    ShipmentCargo,
    ShipmentLine,
    ShipmentLogistics,
    ShipmentFinancials,
    ShipmentDocuments,
    FinanceTransaction,
    CustomsClearingCost,
)
