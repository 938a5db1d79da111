"""
db.engine - Engine bootstrap and session factory.

The connection string decides the dialect.  PostgreSQL keeps the
master_data / logistics / finance schemas; SQLite has no schemas, so
they are folded away with a schema_translate_map and every table lives
in the one database file.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base, SCHEMAS

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def normalize_db_url(url: str) -> str:
    """Point bare postgres URLs at the psycopg (v3) driver."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _read_only_url(url: URL) -> URL:
    """Open a SQLite file with mode=ro so a missing file is never created."""
    if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
        return url
    if url.database.startswith("file:"):
        path = url.database
    else:
        path = "file:" + Path(url.database).resolve().as_posix()
    return url.set(database=path, query={**url.query, "mode": "ro", "uri": "true"})


def init_db(db_url: str, *, echo: bool = False, read_only: bool = False) -> Engine:
    """
    Create the engine, apply dialect tweaks, and emit CREATE TABLE.

    With ``read_only`` no DDL is issued, SQLite files are opened with
    mode=ro and PostgreSQL sessions default to read-only transactions.
    The engine connects lazily, so an unreachable database only surfaces
    when the first session runs a query.
    """
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()

    url = make_url(normalize_db_url(db_url))
    connect_args = {}
    if read_only:
        url = _read_only_url(url)
        if url.get_backend_name() == "postgresql":
            connect_args["options"] = "-c default_transaction_read_only=on"
    engine = create_engine(url, echo=echo, future=True, connect_args=connect_args)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _rec):
            # pysqlite's own BEGIN handling breaks SAVEPOINT; issue BEGIN ourselves.
            dbapi_conn.isolation_level = None
            cur = dbapi_conn.cursor()
            if not read_only:
                cur.execute("PRAGMA journal_mode=WAL")
                cur.execute("PRAGMA synchronous=NORMAL")
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN")

        engine = engine.execution_options(
            schema_translate_map={name: None for name in SCHEMAS}
        )
    elif not read_only:
        with engine.begin() as conn:
            for name in SCHEMAS:
                conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {name}"))

    if not read_only:
        Base.metadata.create_all(engine)
    _engine = engine
    _SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database not initialised - call init_db() first")
    return _engine


def get_session() -> Session:
    """Return a new session.  Caller is responsible for .close()."""
    if _SessionLocal is None:
        raise RuntimeError("Database not initialised - call init_db() first")
    return _SessionLocal()


def get_readonly_session() -> Session:
    """
    Return a session that refuses to flush.

    Used by the dry-run path: any pending INSERT/UPDATE/DELETE raises
    before reaching the database.  Caller still owns .close().
    """
    session = get_session()

    @event.listens_for(session, "before_flush")
    def _refuse_writes(sess, _ctx, _instances):
        if sess.new or sess.dirty or sess.deleted:
            raise RuntimeError("read-only session: writes are not allowed")

    return session
