"""Activity log reporting endpoints (admin only)."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory.core.security import require_admin
from inventory.db.session import get_db
from inventory.models.user import User
from inventory.schemas.activity_log import ActionChoice, ActivityLogFilter
from inventory.services.action_taxonomy import default_taxonomy, list_known_actions
from inventory.services.activity_log import (
    ActivityStorageError,
    ActivityValidationError,
    get_activity_log,
    query_activity_logs,
)

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to fetch activity logs"


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid filter"


def _choices(actions: list[str]) -> list[ActionChoice]:
    taxonomy = default_taxonomy()
    return [ActionChoice(action=action, label=taxonomy.label(action)) for action in actions]


@router.get("", summary="Query activity logs")
def read_activity_logs(
    user_id: str | None = Query(default=None),
    action: str | None = Query(default=None),
    ip_address: str | None = Query(default=None),
    start_date: str | None = Query(default=None),
    end_date: str | None = Query(default=None),
    search: str | None = Query(default=None),
    limit: int | None = Query(default=None),
    offset: int = Query(default=0),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> Any:
    raw: dict[str, Any] = {
        "user_id": user_id,
        "action": action,
        "ip_address": ip_address,
        "start_date": start_date,
        "end_date": end_date,
        "search": search,
        "offset": offset,
    }
    if limit is not None:
        raw["limit"] = limit
    try:
        filters = ActivityLogFilter(**raw)
    except ValidationError as exc:
        return _failure(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    try:
        entries = query_activity_logs(db, filters)
    except ActivityValidationError as exc:
        return _failure(status.HTTP_400_BAD_REQUEST, str(exc))
    except ActivityStorageError:
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, LOAD_FAILED_MESSAGE)

    actions = default_taxonomy().merged_with(entry.action for entry in entries).sorted_actions()
    return jsonable_encoder(
        {
            "success": True,
            "data": entries,
            "count": len(entries),
            "actions": _choices(actions),
        }
    )


@router.get("/actions", summary="List action identifiers for filters")
def read_known_actions(db: Session = Depends(get_db), admin: User = Depends(require_admin)) -> Any:
    try:
        actions = list_known_actions(db)
    except SQLAlchemyError:
        logger.exception("[ACTIVITY] Failed to list action types")
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch action types")
    return jsonable_encoder({"success": True, "data": _choices(actions)})


@router.get("/{event_id}", summary="Get one activity log entry")
def read_activity_log(event_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)) -> Any:
    try:
        entry = get_activity_log(db, event_id)
    except ActivityStorageError:
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, LOAD_FAILED_MESSAGE)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity log not found")
    return jsonable_encoder({"success": True, "data": entry})
