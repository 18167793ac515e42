import logging
from contextlib import contextmanager
from typing import Generator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from appbase_backend.errors import ConflictError, StoreError
from appbase_backend.settings import settings

logger = logging.getLogger(__name__)

_database_options = {
    "pool_pre_ping": True,
    "pool_size": 10,
    "max_overflow": 5,
    "pool_timeout": 30,
    "pool_recycle": 300
}

def build_engine(database_url: str) -> Engine:

    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, connect_args={"check_same_thread": False})
        enable_sqlite_foreign_keys(engine)
        return engine

    return create_engine(database_url, **_database_options)

def enable_sqlite_foreign_keys(engine: Engine):

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

_engine = build_engine(settings.DATABASE_URL)
_SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

def get_engine() -> Engine:
    return _engine

def get_db() -> Generator[Session, None, None]:

    db = _SessionLocal()

    try:
        yield db
    except OperationalError:
        logger.error("Database connection failed")
        db.rollback()
        raise
    finally:
        db.close()

@contextmanager
def atomic(db: Session):
    """Commit everything done inside the block as one transaction.

    Any SQLAlchemy failure rolls the whole unit back and surfaces as StoreError.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info(f"Integrity violation, transaction rolled back: {e.orig}")
        raise ConflictError("Conflicting data") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Transaction rolled back: {e.__class__.__name__}")
        raise StoreError() from e
    except Exception:
        db.rollback()
        raise
