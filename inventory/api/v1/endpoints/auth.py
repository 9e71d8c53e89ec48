"""Authentication endpoints (API JWT)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from inventory.core.security import (
    PASSWORD_MIN_LENGTH,
    client_ip,
    get_current_user,
    get_password_hash,
    issue_user_token,
    verify_password,
)
from inventory.db.session import get_db
from inventory.models.user import User
from inventory.schemas.auth import AuthUserResponse, ChangePasswordRequest, LoginRequest, TokenResponse
from inventory.services.account_service import authenticate_user
from inventory.services.activity_log import record_activity

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    user: User | None = authenticate_user(db, payload.username, payload.password)
    if user is None:
        logger.info("[AUTH] Failed login for username=%s", payload.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect username or password")
    record_activity(user, "USER_LOGIN", f"User logged in: {user.username}", client_ip(request))
    return TokenResponse(access_token=issue_user_token(user))


@router.get("/me", response_model=AuthUserResponse)
def me(current_user: User = Depends(get_current_user)) -> AuthUserResponse:
    return AuthUserResponse.model_validate(current_user)


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, str]:
    if not verify_password(payload.current_password, current_user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    if len(payload.new_password) < PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"New password must be at least {PASSWORD_MIN_LENGTH} characters",
        )
    current_user.password_hash = get_password_hash(payload.new_password)
    db.commit()
    record_activity(current_user, "PASSWORD_CHANGED", "User changed password", client_ip(request))
    return {"message": "Password changed"}
