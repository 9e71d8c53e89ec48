"""Application models package."""

from inventory.models.activity_log import ActivityLog
from inventory.models.user import User

__all__ = ["User", "ActivityLog"]
