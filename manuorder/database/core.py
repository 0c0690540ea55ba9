from contextlib import contextmanager
from typing import Annotated
from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from ..core.config import settings
from ..core.exceptions import InternalError
from ..logging import logger

Base = declarative_base()


def build_engine(database_url: str, timeout: float = settings.DB_TIMEOUT_SECONDS, **kwargs) -> Engine:
    """Create an engine whose connections give up after ``timeout`` seconds."""
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": timeout}
        return create_engine(database_url, connect_args=connect_args, echo=False, **kwargs)

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_timeout=timeout,
        connect_args={"connect_timeout": int(timeout)},
        echo=False,
        **kwargs,
    )


DATABASE_URL = settings.DATABASE_URL
logger.info("Using database: PostgreSQL" if DATABASE_URL.startswith("postgresql") else "Using database: SQLite")

engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


DbSession = Annotated[Session, Depends(get_db)]


@contextmanager
def transaction(db: Session, **context):
    """
    Run a multi-step write as one unit: commit at the end, roll everything back
    on any failure. IntegrityError is re-raised for the caller to classify;
    other storage faults become InternalError (retryable when operational).
    """
    try:
        yield db
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except OperationalError as e:
        db.rollback()
        raise InternalError(technical_details=str(e), context=context, retryable=True) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise InternalError(technical_details=str(e), context=context) from e
    except Exception:
        db.rollback()
        raise
