"""User directory ORM model."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory.db.base import Base

USER_ROLES = ("ADMIN", "INVENTORY_MANAGER", "CASHIER")


def normalize_user_role(role: str | None) -> str:
    """Return the canonical upper-case role or raise for unknown values."""
    normalized = str(role or "").strip().upper().replace("-", "_").replace(" ", "_")
    if normalized not in USER_ROLES:
        raise ValueError(f"Unknown role: {role!r}")
    return normalized


class User(Base):
    """System account for staff logging into the back office."""

    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(Enum(*USER_ROLES, name="user_role"), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
