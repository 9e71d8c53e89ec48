"""Activity log filter and read schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from inventory.core.config import settings


class ActivityLogFilter(BaseModel):
    """Filter for activity log queries.

    Every field is optional and the set fields combine with AND. ``search`` is
    a case-insensitive substring matched against the description, the actor's
    username and full name, and the IP address; any one of them matching is
    enough. ``start_date`` and ``end_date`` are inclusive whole UTC days.
    Blank strings are treated as unset so that empty form fields pass through.
    """

    user_id: int | None = Field(default=None, ge=1)
    action: str | None = Field(default=None, max_length=64)
    ip_address: str | None = Field(default=None, max_length=64)
    start_date: date | None = None
    end_date: date | None = None
    search: str | None = Field(default=None, max_length=200)
    limit: int = Field(default_factory=lambda: settings.activity_log_default_limit, ge=1)
    offset: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @field_validator("user_id", "start_date", "end_date", mode="before")
    @classmethod
    def _blank_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("action", "ip_address", "search", mode="before")
    @classmethod
    def _strip_text(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("limit")
    @classmethod
    def _cap_limit(cls, value: int) -> int:
        return min(value, settings.activity_log_max_limit)


class ActivityLogEntry(BaseModel):
    """An activity event joined with its actor's current directory attributes."""

    id: int
    user_id: int | None
    action: str
    action_label: str
    description: str
    ip_address: str | None
    created_at: datetime
    username: str
    full_name: str
    role: str | None


class ActionChoice(BaseModel):
    action: str
    label: str
