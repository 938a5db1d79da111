"""
trade_import.persister - Where dry-run and live-run part ways.

Both persisters consume the same ImportPlan.  DryRunPersister reads the
existing master data through a session that cannot flush, prints the
preview and rolls back.  TransactionalPersister writes the whole plan in
one transaction:

    IDLE → LOOKUPS_LOADED → IN_TRANSACTION → COMMITTED
                                           ↘ ROLLED_BACK

Nothing is committed unless every record went in.
"""

from __future__ import annotations

import abc
import enum
import logging
from datetime import date
from typing import Callable, Optional, TextIO

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import config
from db.engine import get_readonly_session, get_session
from services.cleanup_service import CleanupService
from services.contract_service import ContractService
from services.finance_service import FinanceService
from services.master_data_service import (
    Lookups, MasterDataResolver, load_lookups, normalize_name,
)
from services.shipment_service import ShipmentService
from trade_import.errors import ImportAbortedError, ValidationFailedError
from trade_import.plan import ImportPlan
from trade_import.records import ParsedShipment
from trade_import.report import ImportStats, render_preview

logger = logging.getLogger(__name__)


class ImportState(enum.Enum):
    IDLE = "idle"
    LOOKUPS_LOADED = "lookups_loaded"
    IN_TRANSACTION = "in_transaction"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Persister(abc.ABC):
    """Consumes an ImportPlan; returns the stats of what was (or would be) written."""

    @abc.abstractmethod
    def persist(self, plan: ImportPlan) -> ImportStats:
        ...


# ── Dry run ───────────────────────────────────────────────────────────

class DryRunPersister(Persister):

    def __init__(
        self,
        session_factory: Callable[[], Session] = get_readonly_session,
        contract_limit: int = config.PREVIEW_CONTRACTS,
        shipment_limit: int = config.PREVIEW_SHIPMENTS,
        out: Optional[TextIO] = None,
    ):
        self.session_factory = session_factory
        self.contract_limit = contract_limit
        self.shipment_limit = shipment_limit
        self.out = out
        self.preview = ""

    def persist(self, plan: ImportPlan) -> ImportStats:
        session = self.session_factory()
        try:
            lookups: Optional[Lookups]
            try:
                lookups = load_lookups(session)
            except SQLAlchemyError as exc:
                # Preview still works; it just cannot say what is new.
                logger.warning("existing master data could not be read: %s", exc)
                lookups = None

            self.preview = render_preview(
                plan, lookups,
                contract_limit=self.contract_limit,
                shipment_limit=self.shipment_limit,
            )
            print(self.preview, file=self.out)
        finally:
            session.rollback()
            session.close()
        return ImportStats()


# ── Live run ──────────────────────────────────────────────────────────

class TransactionalPersister(Persister):

    def __init__(
        self,
        session_factory: Callable[[], Session] = get_session,
        *,
        clear: bool = config.CLEAR_BEFORE_IMPORT,
        continue_on_error: bool = False,
        created_by: str = config.CREATED_BY,
        today: Optional[date] = None,
        out: Optional[TextIO] = None,
    ):
        self.session_factory = session_factory
        self.clear = clear
        self.continue_on_error = continue_on_error
        self.created_by = created_by
        self.today = today
        self.out = out

        self.state = ImportState.IDLE
        self.stats = ImportStats()
        self.lookups: Optional[Lookups] = None
        self.contract_ids: dict[str, object] = {}
        self.cleared: dict[str, int] = {}

    def persist(self, plan: ImportPlan) -> ImportStats:
        skip_contracts: set[str] = set()
        skip_shipments: set[str] = set()
        if not plan.is_valid:
            failures = plan.invalid_records()
            if not self.continue_on_error:
                raise ValidationFailedError(
                    f"{len(failures)} record(s) failed validation; nothing was written",
                    failures,
                )
            skip_contracts, skip_shipments = plan.invalid_keys()

        session = self.session_factory()
        current = ""
        try:
            self.lookups = load_lookups(session)
            self.state = ImportState.LOOKUPS_LOADED

            self.state = ImportState.IN_TRANSACTION
            if self.clear:
                self._echo("Clearing existing contracts, shipments and finance records...")
                self.cleared = CleanupService.clear_transactional_data(session)
                self.lookups = load_lookups(session)
            resolver = MasterDataResolver(session, self.lookups, self.stats)

            self._echo(f"Importing {len(plan.all_contracts)} contracts...")
            for contract in plan.all_contracts:
                current = contract.key
                if contract.key in skip_contracts:
                    self._skip(contract.key)
                    continue
                contract_id = ContractService.insert(
                    session, contract, resolver, created_by=self.created_by,
                )
                self.contract_ids[normalize_name(contract.contract_no)] = contract_id
                self._echo(f"  ✓ {contract.key} ({contract.status})")

            self._echo(f"Importing {len(plan.shipments)} shipments...")
            for shipment in plan.shipments:
                current = shipment.key
                if shipment.key in skip_shipments:
                    self._skip(shipment.key)
                    continue
                self._insert_shipment(session, shipment, resolver)
                self._echo(f"  ✓ {shipment.key}")

            current = ""
            session.commit()
            self.state = ImportState.COMMITTED
            logger.info("import committed: %s", self.stats.to_dict())
        except KeyboardInterrupt as exc:
            self._rollback(session)
            raise ImportAbortedError("import interrupted; all changes rolled back",
                                     record=current, interrupted=True) from exc
        except Exception as exc:
            self._rollback(session)
            where = f" while writing {current}" if current else ""
            reason = (str(exc).splitlines() or [type(exc).__name__])[0]
            self._echo(f"  ✗ {current or '(setup)'}: {reason}")
            raise ImportAbortedError(
                f"import failed{where}: {reason}; all changes rolled back", record=current,
            ) from exc
        finally:
            session.close()

        return self.stats

    def _insert_shipment(self, session: Session, shipment: ParsedShipment,
                         resolver: MasterDataResolver) -> None:
        contract_id = self.contract_for(shipment)
        shipment_id = ShipmentService.insert(
            session, shipment, contract_id, resolver, created_by=self.created_by,
        )
        if FinanceService.record_payment(session, shipment, shipment_id, contract_id,
                                         today=self.today) is not None:
            self.stats.transactions_created += 1
        if FinanceService.record_customs_placeholder(session, shipment, shipment_id) is not None:
            self.stats.customs_costs_created += 1

    def contract_for(self, shipment: ParsedShipment):
        """Contract id for a shipment: this run's contracts first, then existing ones."""
        key = normalize_name(shipment.contract_no)
        if not key:
            return None
        if key in self.contract_ids:
            return self.contract_ids[key]
        return self.lookups.contracts.get(key) if self.lookups else None

    def _skip(self, key: str) -> None:
        self.stats.skipped_records += 1
        logger.warning("skipping invalid record %s", key)
        self._echo(f"  - {key} skipped (failed validation)")

    def _echo(self, message: str) -> None:
        print(message, file=self.out)

    def _rollback(self, session: Session) -> None:
        logger.error("rolling back import (state was %s)", self.state.name)
        session.rollback()
        self.state = ImportState.ROLLED_BACK
