"""Authentication-related request and response schemas."""

from pydantic import BaseModel, ConfigDict


class LoginRequest(BaseModel):
    """Payload for user login."""

    username: str
    password: str


class TokenResponse(BaseModel):
    """JWT response payload."""

    access_token: str
    token_type: str = "bearer"


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class AuthUserResponse(BaseModel):
    """User response for auth endpoints."""

    id: int
    username: str
    full_name: str
    role: str

    model_config = ConfigDict(from_attributes=True)
