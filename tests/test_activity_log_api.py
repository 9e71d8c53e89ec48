"""Activity log reporting endpoint tests."""

from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from inventory.core.config import settings
from inventory.core.security import create_access_token, get_password_hash
from inventory.db import session as db_session
from inventory.db.base import Base
from inventory.main import app
from inventory.models import User
from inventory.schemas.activity_log import ActivityLogFilter
from inventory.services.activity_log import ActivityStorageError, query_activity_logs, record_activity


def _prepare_db(tmp_path: Path, monkeypatch):
    engine = create_engine(f"sqlite:///{tmp_path / 'activity_api.db'}", connect_args={"check_same_thread": False})
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    return testing_session_local


def _seed_users(session_local) -> dict[str, int]:
    with session_local() as db:
        admin = User(username="admin", full_name="Grace Admin", password_hash=get_password_hash("admin123"), role="ADMIN", is_active=True)
        cashier = User(username="cashier", full_name="Peter Till", password_hash=get_password_hash("cash123"), role="CASHIER", is_active=True)
        db.add_all([admin, cashier])
        db.commit()
        return {"admin": admin.id, "cashier": cashier.id}


def _headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user_id)})}"}


def test_login_is_recorded_and_listed_for_admin(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)

    with TestClient(app) as client:
        login = client.post("/api/v1/auth/login", json={"username": "admin", "password": "admin123"})
        assert login.status_code == 200
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        response = client.get("/api/v1/activity-logs", params={"action": "USER_LOGIN"}, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 1
    event = body["data"][0]
    assert event["action"] == "USER_LOGIN"
    assert event["description"] == "User logged in: admin"
    assert event["user_id"] == ids["admin"]
    assert event["username"] == "admin"
    assert event["full_name"] == "Grace Admin"
    assert event["role"] == "ADMIN"
    assert event["ip_address"] == "testclient"


def _login_ip(session_local, client: TestClient, forwarded_for: str) -> str | None:
    login = client.post(
        "/api/v1/auth/login",
        json={"username": "cashier", "password": "cash123"},
        headers={"X-Forwarded-For": forwarded_for},
    )
    assert login.status_code == 200
    with session_local() as db:
        return query_activity_logs(db, ActivityLogFilter(action="USER_LOGIN"))[0].ip_address


def test_spoofed_forwarded_for_is_ignored_by_default(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    _seed_users(session_local)
    monkeypatch.setattr(settings, "forwarded_allow_ips", ())

    with TestClient(app) as client:
        recorded_ip = _login_ip(session_local, client, "203.0.113.66")

    assert recorded_ip == "testclient"


def test_forwarded_for_is_used_behind_a_trusted_proxy(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    _seed_users(session_local)
    monkeypatch.setattr(settings, "forwarded_allow_ips", ("testclient",))

    with TestClient(app) as client:
        recorded_ip = _login_ip(session_local, client, "198.51.100.7, 10.0.0.1")

    assert recorded_ip == "198.51.100.7"


def test_failed_login_is_not_recorded(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)

    with TestClient(app) as client:
        login = client.post("/api/v1/auth/login", json={"username": "admin", "password": "wrong"})
        response = client.get("/api/v1/activity-logs", headers=_headers(ids["admin"]))

    assert login.status_code == 401
    assert response.json()["count"] == 0


def test_empty_result_is_a_success_distinct_from_failure(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)

    with TestClient(app) as client:
        response = client.get("/api/v1/activity-logs", params={"search": "nothing-matches"}, headers=_headers(ids["admin"]))

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["count"] == 0
    assert response.json()["data"] == []


def test_response_lists_taxonomy_merged_with_observed_actions(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)
    record_activity(ids["cashier"], "LAYAWAY_OPENED", "Opened layaway for customer 12")

    with TestClient(app) as client:
        response = client.get("/api/v1/activity-logs", headers=_headers(ids["admin"]))

    actions = [choice["action"] for choice in response.json()["actions"]]
    assert "LAYAWAY_OPENED" in actions
    assert "SUPPLIER_CREATED" in actions
    assert actions == sorted(actions)
    labels = {choice["action"]: choice["label"] for choice in response.json()["actions"]}
    assert labels["LAYAWAY_OPENED"] == "layaway opened"


def test_blank_query_fields_are_ignored(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)
    record_activity(ids["cashier"], "SALE_CREATED", "Sale INV-0001 completed")

    with TestClient(app) as client:
        response = client.get(
            "/api/v1/activity-logs",
            params={"user_id": "", "action": "", "start_date": "", "end_date": "", "search": ""},
            headers=_headers(ids["admin"]),
        )

    assert response.status_code == 200
    assert response.json()["count"] == 1


def test_inverted_date_range_is_a_validation_failure(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)

    with TestClient(app) as client:
        response = client.get(
            "/api/v1/activity-logs",
            params={"start_date": "2026-10-10", "end_date": "2026-10-01"},
            headers=_headers(ids["admin"]),
        )

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "start_date" in response.json()["message"]


def test_malformed_filter_values_are_rejected(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)

    with TestClient(app) as client:
        bad_user = client.get("/api/v1/activity-logs", params={"user_id": "abc"}, headers=_headers(ids["admin"]))
        bad_date = client.get("/api/v1/activity-logs", params={"start_date": "yesterday"}, headers=_headers(ids["admin"]))

    assert bad_user.status_code == 400
    assert bad_user.json()["success"] is False
    assert "user_id" in bad_user.json()["message"]
    assert bad_date.status_code == 400


def test_storage_failure_returns_generic_failure(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)

    def failing_query(db, filters=None, **kwargs):
        raise ActivityStorageError("Failed to fetch activity logs")

    monkeypatch.setattr("inventory.api.v1.endpoints.activity_logs.query_activity_logs", failing_query)

    with TestClient(app) as client:
        response = client.get("/api/v1/activity-logs", headers=_headers(ids["admin"]))

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to fetch activity logs"}


def test_non_admin_cannot_read_activity_logs(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)

    with TestClient(app) as client:
        as_cashier = client.get("/api/v1/activity-logs", headers=_headers(ids["cashier"]))
        anonymous = client.get("/api/v1/activity-logs")

    assert as_cashier.status_code == 403
    assert anonymous.status_code in {401, 403}


def test_known_actions_endpoint_includes_stored_actions(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)
    record_activity(None, "EOD_REPORT_EMAILED", "End of day report emailed to owner")

    with TestClient(app) as client:
        response = client.get("/api/v1/activity-logs/actions", headers=_headers(ids["admin"]))

    assert response.status_code == 200
    actions = [choice["action"] for choice in response.json()["data"]]
    assert "EOD_REPORT_EMAILED" in actions
    assert "USER_LOGIN" in actions
    assert actions == sorted(set(actions))


def test_single_event_endpoint(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare_db(tmp_path, monkeypatch)
    ids = _seed_users(session_local)
    result = record_activity(ids["cashier"], "SALE_CREATED", "Sale INV-0002 completed", "10.0.0.8")

    with TestClient(app) as client:
        found = client.get(f"/api/v1/activity-logs/{result.event_id}", headers=_headers(ids["admin"]))
        missing = client.get(f"/api/v1/activity-logs/{result.event_id + 1}", headers=_headers(ids["admin"]))

    assert found.status_code == 200
    assert found.json()["data"]["full_name"] == "Peter Till"
    assert found.json()["data"]["ip_address"] == "10.0.0.8"
    assert missing.status_code == 404
