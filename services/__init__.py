"""
services - Database-facing layer sitting between the import pipeline and DB.
"""

from services.master_data_service import (                 # noqa: F401
    Kind, Lookups, MasterDataResolver, find, load_lookups,
)
from services.contract_service import ContractService       # noqa: F401
from services.shipment_service import ShipmentService       # noqa: F401
from services.finance_service import FinanceService         # noqa: F401
from services.cleanup_service import CleanupService         # noqa: F401
