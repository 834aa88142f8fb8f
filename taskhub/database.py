from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from taskhub.config import settings
from taskhub.utils.errors import TransactionFailure

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Session factory used by work that outlives the request (background delivery)."""
    return SessionLocal


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Run a unit of work: commit on success, roll back and raise TransactionFailure on store errors."""
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise TransactionFailure("The operation could not be completed") from exc
    except Exception:
        db.rollback()
        raise
