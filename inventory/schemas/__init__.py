"""Schema exports."""

from inventory.schemas.activity_log import ActionChoice, ActivityLogEntry, ActivityLogFilter
from inventory.schemas.auth import AuthUserResponse, ChangePasswordRequest, LoginRequest, TokenResponse
from inventory.schemas.user import UserActiveUpdate, UserCreate, UserRead, UserUpdate

__all__ = [
    "ActionChoice",
    "ActivityLogEntry",
    "ActivityLogFilter",
    "AuthUserResponse",
    "ChangePasswordRequest",
    "LoginRequest",
    "TokenResponse",
    "UserActiveUpdate",
    "UserCreate",
    "UserRead",
    "UserUpdate",
]
