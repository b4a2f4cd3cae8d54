"""Database package: engine, session factory, init_db(), get_session()."""

import threading
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.orm import Session, sessionmaker

from rxreturns.config import DATABASE_URL, SEED_ON_INIT
from rxreturns.db.base import Base

# Import all models so Base.metadata has all tables
from rxreturns.db.models import (  # noqa: F401
    CustomPackage,
    CustomPackageItem,
    InventoryItem,
    Pharmacy,
    Product,
    Return,
    ReturnItem,
    ReturnReportRecord,
    ReverseDistributor,
)
from rxreturns.utils.logger import get_logger

logger = get_logger("rxreturns.db")

_init_lock = threading.Lock()
_engine = None
_SessionLocal: sessionmaker | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _get_engine():
    """Create engine with check_same_thread=False for use from executor threads."""
    url = DATABASE_URL
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        if "?" in url:
            url += "&check_same_thread=False"
        else:
            url += "?check_same_thread=False"
    engine = create_engine(url, echo=False)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def init_db() -> None:
    """Create engine and tables; seed reference data from CSV when the database is fresh."""
    global _engine, _SessionLocal
    with _init_lock:
        if _SessionLocal is not None:
            return
        _engine = _get_engine()
        fresh = not inspect(_engine).has_table("reverse_distributors")
        Base.metadata.create_all(bind=_engine)
        if fresh and SEED_ON_INIT:
            from rxreturns.db.seed_data import seed_reference_data

            with Session(bind=_engine) as session:
                seed_reference_data(session)
                session.commit()
        _SessionLocal = sessionmaker(bind=_engine, autocommit=False, autoflush=False, expire_on_commit=False)
        logger.info("db.initialized", fresh=fresh, seeded=fresh and SEED_ON_INIT)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Context manager yielding a DB session. Calls init_db() on first use.

    Commits on normal exit and rolls back on any exception, so every write
    made inside one ``with`` block is atomic.
    """
    init_db()
    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
