"""Staff credentials and bearer tokens for the back office API.

Access tokens carry the account id as ``sub`` plus the username and role the
account had when the token was issued. A token whose role no longer matches
the stored account is refused, so role changes made through user management
take effect on the next request.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from inventory.core.config import settings
from inventory.db.session import get_db
from inventory.models.user import User
from inventory.services.user_service import get_user_by_id

PASSWORD_MIN_LENGTH = 6

pwd_context: CryptContext = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme: HTTPBearer = HTTPBearer(auto_error=True)


def get_password_hash(password: str) -> str:
    """Hash a staff password for storage in ``users.password_hash``."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict[str, Any]) -> str:
    """Sign ``data`` as a JWT expiring after ``JWT_EXPIRE_MINUTES``."""
    to_encode: dict[str, Any] = data.copy()
    issued_at = datetime.now(timezone.utc)
    to_encode.update({"iat": issued_at, "exp": issued_at + timedelta(minutes=settings.jwt_expire_minutes)})
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def issue_user_token(user: User) -> str:
    """Return the access token handed out at login."""
    return create_access_token(data={"sub": str(user.id), "username": user.username, "role": user.role})


def verify_token(token: str) -> dict[str, Any]:
    """Decode a bearer token, raising 401 when it is forged or expired."""
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from exc

    return payload


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated user from the Authorization header."""
    payload: dict[str, Any] = verify_token(credentials.credentials)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        ) from exc

    user: User | None = get_user_by_id(db=db, user_id=user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    token_role = payload.get("role")
    if token_role is not None and token_role != user.role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Role changed, sign in again",
        )

    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Allow only administrators through."""
    if current_user.role != "ADMIN":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return current_user


def client_ip(request: Request) -> str | None:
    """Return the originating client address for activity records.

    ``X-Forwarded-For`` is only honoured when the direct peer is listed in
    ``FORWARDED_ALLOW_IPS`` (or that setting is ``*``).
    """
    peer = request.client.host if request.client else None
    trusted = settings.forwarded_allow_ips
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded and ("*" in trusted or (peer is not None and peer in trusted)):
        return forwarded.split(",")[0].strip() or peer
    return peer
