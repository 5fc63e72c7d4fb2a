import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)


def _normalize_database_url(url: str) -> str:
    # `mysql://` in .env is upgraded to the pymysql driver form.
    return url.replace("mysql://", "mysql+pymysql://", 1) if url.startswith("mysql://") else url


def _engine_options(url: str) -> dict:
    options = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Pipeline moves from several request threads wait on the file lock instead of failing.
        options["connect_args"] = {"check_same_thread": False, "timeout": 30}
    return options


_db_url = _normalize_database_url((DATABASE_URL or "").strip())
engine = create_engine(_db_url, **_engine_options(_db_url))

if _db_url.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):  # noqa: ANN001
        # foreign_keys keeps history and confirmation rows tied to a real application.
        try:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.execute("PRAGMA busy_timeout=30000;")
            cursor.close()
        except Exception as e:
            logger.warning("Failed to set SQLite pragmas: %s", e)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def get_db():
    """Request-scoped session. Anything left uncommitted by a failed request is rolled back."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session):
    """
    Wrap one pipeline mutation.

    Rows loaded ``FOR UPDATE`` stay locked until the transaction ends, so a
    check that fails between the load and the commit must end it here rather
    than leave it open until the session closes.
    """
    try:
        yield db
    except Exception:
        db.rollback()
        raise


def init_db():
    # Models register on Base at import time.
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
