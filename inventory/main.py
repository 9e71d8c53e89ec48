"""FastAPI entrypoint for the inventory backend."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from inventory.api.v1.api import api_router
from inventory.core.config import settings
from inventory.db import session as db_session
from inventory.db.base import Base
from inventory.db.migrations import ensure_sqlite_schema
from inventory.services.account_service import ensure_default_admin
from inventory.services.action_taxonomy import default_taxonomy

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
def startup() -> None:
    engine = db_session.engine
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema(engine)
    logger.info("[BOOTSTRAP] %s known activity actions loaded", len(default_taxonomy().known))
    with db_session.SessionLocal() as session:
        try:
            admin_present = ensure_default_admin(session)
            logger.info("[BOOTSTRAP] admin present: %s", "yes" if admin_present else "no")
        except Exception:
            logger.exception("[BOOTSTRAP] Admin bootstrap failed; continuing startup.")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "env": settings.app_env}
