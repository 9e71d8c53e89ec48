"""Database engine and session management.

Request handlers get a session from ``get_db``; the activity recorder opens
its own short-lived session from ``SessionLocal`` so an event commit never
rides on the caller's transaction.
"""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from inventory.core.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    """Return ``create_engine`` keyword arguments suited to the backend."""
    if make_url(database_url).get_backend_name() == "sqlite":
        # FastAPI runs sync handlers in a threadpool.
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.database_url, **engine_options(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session and close it afterwards."""
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
