"""Admin user management endpoints.

Each change is committed first and only then written to the activity log.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory.core.security import client_ip, get_password_hash, require_admin
from inventory.db.session import get_db
from inventory.models.user import User, normalize_user_role
from inventory.schemas.user import UserActiveUpdate, UserCreate, UserRead, UserUpdate
from inventory.services.activity_log import record_activity
from inventory.services.user_service import create_user, get_user_by_id, get_user_by_username, list_users

router: APIRouter = APIRouter()


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _normalize_role_or_400(role: str) -> str:
    try:
        return normalize_user_role(role)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("", response_model=list[UserRead], summary="List users")
def read_users(db: Session = Depends(get_db), admin: User = Depends(require_admin)) -> list[User]:
    return list_users(db)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user_endpoint(
    payload: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> User:
    role = _normalize_role_or_400(payload.role)
    username = payload.username.strip()
    if get_user_by_username(db, username) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")
    try:
        user = create_user(
            db,
            username=username,
            hashed_password=get_password_hash(payload.password),
            role=role,
            full_name=payload.full_name.strip(),
            email=payload.email,
        )
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists") from exc
    record_activity(admin, "USER_CREATED", f"Admin created user: {user.username} (ID: {user.id})", client_ip(request))
    return user


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> User:
    user = _get_user_or_404(db, user_id)
    if payload.role is not None:
        user.role = _normalize_role_or_400(payload.role)
    if payload.full_name is not None:
        user.full_name = payload.full_name.strip()
    if payload.email is not None:
        user.email = payload.email or None
    if payload.password:
        user.password_hash = get_password_hash(payload.password)
    db.commit()
    db.refresh(user)
    record_activity(admin, "USER_UPDATED", f"Admin updated user: {user.username} (ID: {user.id})", client_ip(request))
    return user


@router.patch("/{user_id}/active", response_model=UserRead)
def set_user_active(
    user_id: int,
    payload: UserActiveUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> User:
    user = _get_user_or_404(db, user_id)
    if user.id == admin.id and not payload.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate your own account")
    user.is_active = payload.is_active
    db.commit()
    db.refresh(user)
    verb = "activated" if payload.is_active else "deactivated"
    record_activity(
        admin,
        f"USER_{verb.upper()}",
        f"Admin {verb} user: {user.username} (ID: {user.id})",
        client_ip(request),
    )
    return user


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
) -> dict[str, str]:
    user = _get_user_or_404(db, user_id)
    if user.id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    username, removed_id = user.username, user.id
    db.delete(user)
    db.commit()
    record_activity(admin, "USER_DELETED", f"Admin deleted user: {username} (ID: {removed_id})", client_ip(request))
    return {"message": "User deleted"}
