from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from inventory.core.config import settings
from inventory.core.security import verify_password
from inventory.db import session as db_session
from inventory.db.base import Base
from inventory.main import app
from inventory.models import ActivityLog, User
from inventory.services.account_service import ensure_default_admin


def _build_session_local(tmp_path: Path, monkeypatch) -> sessionmaker:
    engine = create_engine(f"sqlite:///{tmp_path / 'bootstrap.db'}", connect_args={"check_same_thread": False})
    session_local = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", session_local)
    return session_local


def test_ensure_default_admin_creates_configured_admin_once(tmp_path: Path, monkeypatch) -> None:
    session_local = _build_session_local(tmp_path, monkeypatch)
    monkeypatch.setattr(settings, "admin_user", "owner")
    monkeypatch.setattr(settings, "admin_pass", "owner-pass-1")

    with session_local() as session:
        assert ensure_default_admin(session) is True
    with session_local() as session:
        assert ensure_default_admin(session) is True
        admins = session.scalars(select(User).where(User.role == "ADMIN")).all()
        events = session.scalars(select(ActivityLog)).all()

    assert [admin.username for admin in admins] == ["owner"]
    assert verify_password("owner-pass-1", admins[0].password_hash)
    assert len(events) == 1
    assert events[0].action == "USER_CREATED"
    assert events[0].actor_user_id is None
    assert events[0].actor_identifier == "system"


def test_ensure_default_admin_without_credentials_creates_nothing(tmp_path: Path, monkeypatch) -> None:
    session_local = _build_session_local(tmp_path, monkeypatch)
    monkeypatch.setattr(settings, "admin_user", "")
    monkeypatch.setattr(settings, "admin_pass", "")

    with session_local() as session:
        assert ensure_default_admin(session) is False
        assert session.scalars(select(User)).all() == []


def test_startup_bootstraps_admin_that_can_log_in(tmp_path: Path, monkeypatch) -> None:
    _build_session_local(tmp_path, monkeypatch)
    monkeypatch.setattr(settings, "admin_user", "owner")
    monkeypatch.setattr(settings, "admin_pass", "owner-pass-1")

    with TestClient(app) as client:
        login = client.post("/api/v1/auth/login", json={"username": "owner", "password": "owner-pass-1"})
        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {login.json()['access_token']}"})

    assert login.status_code == 200
    assert me.json()["username"] == "owner"
    assert me.json()["role"] == "ADMIN"
