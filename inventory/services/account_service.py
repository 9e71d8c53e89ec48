"""Account provisioning and credential checks."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from inventory.core.config import settings
from inventory.core.security import get_password_hash, verify_password
from inventory.models import User
from inventory.services.activity_log import record_activity
from inventory.services.user_service import count_admin_users, create_user, get_user_by_username

logger = logging.getLogger(__name__)


def ensure_default_admin(db: Session) -> bool:
    """Create the configured bootstrap admin when no active admin exists.

    Returns:
        bool: True when an active admin is present after this call.
    """
    if count_admin_users(db) > 0:
        logger.info("[BOOTSTRAP] Admin exists")
        return True
    if not settings.admin_user or not settings.admin_pass:
        logger.warning("[BOOTSTRAP] No admin account and ADMIN_USER/ADMIN_PASS not set.")
        return False
    if get_user_by_username(db, settings.admin_user) is not None:
        logger.warning("[BOOTSTRAP] User %s exists but is not an active admin; leaving it untouched.", settings.admin_user)
        return False

    admin = create_user(
        db,
        username=settings.admin_user,
        hashed_password=get_password_hash(settings.admin_pass),
        role="ADMIN",
        full_name="Administrator",
    )
    record_activity(None, "USER_CREATED", f"Bootstrap admin created: {admin.username} (ID: {admin.id})")
    logger.warning("[SECURITY] Bootstrap admin account %s created from environment.", admin.username)
    return True


def authenticate_user(db: Session, username: str, password: str) -> User | None:
    user = get_user_by_username(db, username.strip())
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user
