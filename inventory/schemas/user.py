"""User management schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=128)
    password: str = Field(min_length=6)
    full_name: str = ""
    role: str
    email: str | None = None


class UserUpdate(BaseModel):
    full_name: str | None = None
    role: str | None = None
    email: str | None = None
    password: str | None = Field(default=None, min_length=6)


class UserActiveUpdate(BaseModel):
    is_active: bool


class UserRead(BaseModel):
    id: int
    username: str
    full_name: str
    role: str
    email: str | None = None
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
