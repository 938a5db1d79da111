import pytest
from sqlalchemy import func, select

from db import get_session, init_db
from tests.csvdata import CONTRACT_ROWS, SHIPMENT_ROWS, export


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    engine = init_db("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    s = get_session()
    yield s
    s.close()


@pytest.fixture
def count_rows(engine):
    """Row count of a model, read through its own short-lived session."""
    def _count(model):
        with get_session() as s:
            return s.scalar(select(func.count()).select_from(model))
    return _count


@pytest.fixture
def two_files(tmp_path):
    """(contracts path, shipments path) for the small two-file data set."""
    contracts = tmp_path / "Contracts.csv"
    shipments = tmp_path / "Shipments.csv"
    contracts.write_text(export(*CONTRACT_ROWS, title="Contracts"), encoding="utf-8")
    shipments.write_text("\ufeff" + export(*SHIPMENT_ROWS, title="Shipments"), encoding="utf-8")
    return contracts, shipments
