"""Activity log recording and querying.

Every state-changing operation calls :func:`record_activity` after its own
work has been committed. The write happens in a separate session, so a failing
log write never rolls back or fails the caller; it is logged and reported in
the returned :class:`RecordResult` instead. Bad input is a programming error
and raises :class:`ActivityValidationError` immediately.

:func:`query_activity_logs` reads the log back through an
:class:`~inventory.schemas.activity_log.ActivityLogFilter`, newest first, with
each event joined against the user directory.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory.db import session as db_session
from inventory.models import ActivityLog, User
from inventory.models.activity_log import ACTION_MAX_LENGTH, IP_ADDRESS_MAX_LENGTH, SYSTEM_ACTOR
from inventory.schemas.activity_log import ActivityLogEntry, ActivityLogFilter
from inventory.services.action_taxonomy import ActionTaxonomy, default_taxonomy
from inventory.utils.time import day_window_utc

logger = logging.getLogger(__name__)

UNKNOWN_USER_NAME = "Unknown User"
SYSTEM_USER_NAME = "System"


class ActivityLogError(Exception):
    """Base error for the activity log."""


class ActivityValidationError(ActivityLogError, ValueError):
    """Raised for input the caller has to fix."""


class ActivityStorageError(ActivityLogError):
    """Raised when the log store cannot be read."""


@dataclass(frozen=True)
class RecordResult:
    ok: bool
    event_id: int | None = None
    created_at: datetime | None = None
    error: str | None = None


def _clean_required(value: str | None, field_name: str, max_length: int | None = None) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ActivityValidationError(f"{field_name} must be a non-empty string")
    cleaned = value.strip()
    if max_length is not None and len(cleaned) > max_length:
        raise ActivityValidationError(f"{field_name} must be at most {max_length} characters")
    return cleaned


def _clean_ip(ip_address: str | None) -> str | None:
    if ip_address is None:
        return None
    cleaned = str(ip_address).strip()
    if len(cleaned) > IP_ADDRESS_MAX_LENGTH:
        raise ActivityValidationError(f"ip_address must be at most {IP_ADDRESS_MAX_LENGTH} characters")
    return cleaned or None


def record_activity(
    actor: User | int | None,
    action: str,
    description: str,
    ip_address: str | None = None,
    *,
    session_factory: Callable[[], Session] | None = None,
) -> RecordResult:
    """Append one event to the activity log.

    ``actor`` is a :class:`User`, a user id, or ``None`` for system-initiated
    events. Raises :class:`ActivityValidationError` for malformed input or an
    actor id that does not exist. Any storage failure is logged and returned
    as ``RecordResult(ok=False)``; it never propagates.
    """
    clean_action = _clean_required(action, "action", ACTION_MAX_LENGTH)
    clean_description = _clean_required(description, "description")
    clean_ip = _clean_ip(ip_address)

    factory = session_factory or db_session.SessionLocal
    try:
        with factory() as db:
            actor_id, actor_identifier = _resolve_actor(db, actor)
            entry = ActivityLog(
                actor_user_id=actor_id,
                actor_identifier=actor_identifier,
                action=clean_action,
                description=clean_description,
                ip_address=clean_ip,
            )
            db.add(entry)
            db.flush()
            result = RecordResult(ok=True, event_id=entry.id, created_at=entry.created_at)
            db.commit()
            return result
    except ActivityValidationError:
        raise
    except Exception as exc:
        logger.exception("[ACTIVITY] Failed to record action=%s actor=%r", clean_action, _actor_ref(actor))
        return RecordResult(ok=False, error=str(exc) or exc.__class__.__name__)


def _actor_ref(actor: User | int | None) -> int | str | None:
    if isinstance(actor, User):
        return actor.id
    return actor


def _resolve_actor(db: Session, actor: User | int | None) -> tuple[int | None, str]:
    if actor is None:
        return None, SYSTEM_ACTOR
    if isinstance(actor, User):
        if actor.id is None:
            raise ActivityValidationError("actor must be a persisted user")
        return actor.id, actor.username
    if isinstance(actor, bool) or not isinstance(actor, int):
        raise ActivityValidationError("actor must be a User, a user id, or None")
    username = db.scalar(select(User.username).where(User.id == actor))
    if username is None:
        raise ActivityValidationError(f"actor {actor} does not exist")
    return actor, username


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_activity_query(filters: ActivityLogFilter) -> Select:
    """Translate ``filters`` into a SELECT over the log joined with users."""
    statement = select(ActivityLog, User).outerjoin(User, User.id == ActivityLog.actor_user_id)

    if filters.user_id is not None:
        statement = statement.where(ActivityLog.actor_user_id == filters.user_id)
    if filters.action is not None:
        statement = statement.where(ActivityLog.action == filters.action)
    if filters.ip_address is not None:
        statement = statement.where(
            ActivityLog.ip_address.ilike(f"%{_escape_like(filters.ip_address)}%", escape="\\")
        )

    start, end = day_window_utc(filters.start_date, filters.end_date)
    if start is not None:
        statement = statement.where(ActivityLog.created_at >= start)
    if end is not None:
        statement = statement.where(ActivityLog.created_at < end)

    if filters.search is not None:
        pattern = f"%{_escape_like(filters.search)}%"
        statement = statement.where(
            or_(
                ActivityLog.description.ilike(pattern, escape="\\"),
                func.coalesce(User.username, ActivityLog.actor_identifier).ilike(pattern, escape="\\"),
                User.full_name.ilike(pattern, escape="\\"),
                ActivityLog.ip_address.ilike(pattern, escape="\\"),
            )
        )

    return (
        statement.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(filters.limit)
        .offset(filters.offset)
    )


def _to_entry(log: ActivityLog, user: User | None, taxonomy: ActionTaxonomy) -> ActivityLogEntry:
    if user is not None:
        full_name = user.full_name or user.username
    elif log.actor_user_id is None and log.actor_identifier == SYSTEM_ACTOR:
        full_name = SYSTEM_USER_NAME
    else:
        full_name = UNKNOWN_USER_NAME
    return ActivityLogEntry(
        id=log.id,
        user_id=log.actor_user_id,
        action=log.action,
        action_label=taxonomy.label(log.action),
        description=log.description,
        ip_address=log.ip_address,
        created_at=log.created_at,
        username=user.username if user is not None else log.actor_identifier,
        full_name=full_name,
        role=user.role if user is not None else None,
    )


def query_activity_logs(
    db: Session,
    filters: ActivityLogFilter | None = None,
    *,
    taxonomy: ActionTaxonomy | None = None,
) -> list[ActivityLogEntry]:
    """Return events matching ``filters``, newest first, ties by highest id.

    Raises :class:`ActivityValidationError` before touching the database when
    ``start_date`` is after ``end_date``, and :class:`ActivityStorageError`
    when the read fails.
    """
    filters = filters or ActivityLogFilter()
    if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
        raise ActivityValidationError("start_date must not be after end_date")

    taxonomy = taxonomy or default_taxonomy()
    try:
        rows = db.execute(build_activity_query(filters)).all()
    except SQLAlchemyError as exc:
        logger.exception("[ACTIVITY] Activity log query failed")
        raise ActivityStorageError("Failed to fetch activity logs") from exc
    return [_to_entry(log, user, taxonomy) for log, user in rows]


def get_activity_log(
    db: Session, event_id: int, *, taxonomy: ActionTaxonomy | None = None
) -> ActivityLogEntry | None:
    """Return a single enriched event, or ``None`` when it does not exist."""
    try:
        row = db.execute(
            select(ActivityLog, User)
            .outerjoin(User, User.id == ActivityLog.actor_user_id)
            .where(ActivityLog.id == event_id)
        ).first()
    except SQLAlchemyError as exc:
        logger.exception("[ACTIVITY] Failed to load activity log id=%s", event_id)
        raise ActivityStorageError("Failed to fetch activity logs") from exc
    if row is None:
        return None
    log, user = row
    return _to_entry(log, user, taxonomy or default_taxonomy())
