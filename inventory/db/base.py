"""Shared SQLAlchemy base declarative class and model imports."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models."""


# Import model modules so metadata is populated before create_all.
from inventory.models import activity_log as _activity_log  # noqa: E402,F401
from inventory.models import user as _user  # noqa: E402,F401
