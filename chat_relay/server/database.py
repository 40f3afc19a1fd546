"""SQLAlchemy engine, session factory and request-scoped session dependency."""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import DATABASE_URL
from .errors import StorageError
from .logging_config import configure_logging

logger = configure_logging()

# only SQLite needs that arg
_url = make_url(DATABASE_URL)
_connect_args = {"check_same_thread": False} if _url.drivername.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a session that is closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def storage_guard(db: Session, operation: str) -> Iterator[None]:
    """Roll back and re-raise store failures as StorageError. Never retries."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("STORAGE_ERROR operation=%s error=%s", operation, exc)
        raise StorageError(f"Storage failure during {operation}") from exc
