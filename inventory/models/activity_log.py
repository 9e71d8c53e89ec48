"""Append-only activity log model."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory.db.base import Base
from inventory.utils.time import monotonic_utc_now

ACTION_MAX_LENGTH = 64
IP_ADDRESS_MAX_LENGTH = 64
SYSTEM_ACTOR = "system"


class ActivityLog(Base):
    """One recorded user or system action.

    ``actor_user_id`` carries no database foreign key: rows must outlive the
    user they reference. ``actor_identifier`` keeps the username as it was when
    the event was written.
    """

    __tablename__ = "activity_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True)
    actor_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    actor_identifier: Mapped[str] = mapped_column(String(128), nullable=False, default=SYSTEM_ACTOR)
    action: Mapped[str] = mapped_column(String(ACTION_MAX_LENGTH), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(IP_ADDRESS_MAX_LENGTH), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=monotonic_utc_now, index=True)
