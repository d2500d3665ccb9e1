"""
Tests for registration, login, sessions, KPI settings and extension auth.
"""
import logging
from datetime import timedelta

from jose import jwt

from hirepath.core.auth import create_access_token, decode_token
from hirepath.core.config import get_settings
from hirepath.services.user_service import UserService


def test_register_returns_session(client):
    resp = client.post("/api/users/register", json={
        "email": "Alice@Example.com", "password": "secret123", "name": "  Alice  ",
    })
    assert resp.status_code == 201
    body = resp.json()

    user = body["user"]
    assert user["email"] == "alice@example.com"
    assert user["name"] == "Alice"
    assert user["isGoogleUser"] is False
    assert user["kpiSettings"] == {"dailyTarget": 10, "level": "Just Looking", "dreamCompanies": []}
    assert user["stats"]["totalApplications"] == 0
    assert "password" not in user

    assert decode_token(body["token"])["sub"] == user["id"]


def test_register_stores_hash_not_password(client, mongo_db, alice):
    doc = mongo_db.users.find_one({"email": "alice@example.com"})
    assert doc["password"] != "secret123"
    assert doc["password"].startswith("$2")


def test_register_duplicate_email(client, alice):
    resp = client.post("/api/users/register", json={
        "email": "ALICE@example.com", "password": "another1", "name": "Other",
    })
    assert resp.status_code == 400
    assert resp.json()["code"] == "Conflict"
    assert resp.json()["message"] == "User already exists"


def test_register_short_password(client):
    resp = client.post("/api/users/register", json={
        "email": "bob@example.com", "password": "123", "name": "Bob",
    })
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "Validation"
    assert [e["field"] for e in body["errors"]] == ["password"]


def test_register_invalid_email(client):
    resp = client.post("/api/users/register", json={
        "email": "not-an-email", "password": "secret123", "name": "Bob",
    })
    assert resp.status_code == 400
    assert resp.json()["code"] == "Validation"


def test_login(client, alice):
    resp = client.post("/api/users/login", json={"email": "alice@example.com", "password": "secret123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == alice["user"]["id"]
    assert resp.json()["token"]


def test_login_wrong_password(client, alice):
    resp = client.post("/api/users/login", json={"email": "alice@example.com", "password": "wrong-pass"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "InvalidCredentials"


def test_login_unknown_email(client):
    resp = client.post("/api/users/login", json={"email": "nobody@example.com", "password": "secret123"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "InvalidCredentials"


def test_login_google_account(client):
    UserService().create_google_user("gina@example.com", "Gina", "google-123", None)
    resp = client.post("/api/users/login", json={"email": "gina@example.com", "password": "whatever"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "AccountConflict"


def test_me(client, alice, auth_headers):
    resp = client.get("/api/users/me", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == "alice@example.com"
    assert resp.json()["id"] == alice["user"]["id"]


def test_me_without_token(client):
    resp = client.get("/api/users/me")
    assert resp.status_code == 401
    assert resp.json()["code"] == "Unauthorized"


def test_me_with_malformed_token(client):
    resp = client.get("/api/users/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401


def test_me_with_expired_token(client, alice):
    token = create_access_token(alice["user"]["id"], expires_delta=timedelta(seconds=-10))
    resp = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_me_with_token_signed_by_other_key(client, alice):
    token = jwt.encode({"sub": alice["user"]["id"]}, "some-other-secret", algorithm=get_settings().jwt_algorithm)
    resp = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_me_for_deleted_user(client, mongo_db, alice, auth_headers):
    mongo_db.users.delete_many({})
    resp = client.get("/api/users/me", headers=auth_headers)
    assert resp.status_code == 401


def test_update_kpi_settings_partial(client, auth_headers):
    resp = client.put("/api/users/kpi-settings", headers=auth_headers, json={"dailyTarget": 5})
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "KPI settings updated successfully"
    assert body["kpiSettings"] == {"dailyTarget": 5, "level": "Just Looking", "dreamCompanies": []}


def test_update_kpi_settings_all_fields(client, auth_headers):
    resp = client.put("/api/users/kpi-settings", headers=auth_headers, json={
        "level": "Desperate", "dreamCompanies": [" Acme ", "", "Globex"],
    })
    assert resp.status_code == 200
    kpi = resp.json()["kpiSettings"]
    assert kpi["level"] == "Desperate"
    assert kpi["dreamCompanies"] == ["Acme", "Globex"]
    assert kpi["dailyTarget"] == 10

    me = client.get("/api/users/me", headers=auth_headers).json()
    assert me["kpiSettings"]["level"] == "Desperate"


def test_update_kpi_settings_rejects_bad_values(client, auth_headers):
    for payload in ({"level": "Meh"}, {"dailyTarget": 0}, {"dailyTarget": None}, {"foo": 1}):
        resp = client.put("/api/users/kpi-settings", headers=auth_headers, json=payload)
        assert resp.status_code == 400, payload
        assert resp.json()["code"] == "Validation"


def test_update_kpi_settings_empty_body(client, auth_headers):
    resp = client.put("/api/users/kpi-settings", headers=auth_headers, json={})
    assert resp.status_code == 400
    assert resp.json()["message"] == "No fields to update"


def test_update_kpi_settings_requires_auth(client):
    resp = client.put("/api/users/kpi-settings", json={"dailyTarget": 5})
    assert resp.status_code == 401


def test_extension_auth_valid_token(client, alice):
    resp = client.post("/api/users/extension/auth", json={"token": alice["token"]})
    assert resp.status_code == 200
    assert resp.json()["authenticated"] is True
    assert resp.json()["user"]["email"] == "alice@example.com"


def test_extension_auth_invalid_token(client):
    resp = client.post("/api/users/extension/auth", json={"token": "garbage"})
    assert resp.status_code == 401
    assert resp.json()["authenticated"] is False
    assert resp.json()["code"] == "Unauthorized"


def test_registration_logs_mask_email(client, caplog):
    package_logger = logging.getLogger("hirepath")
    package_logger.addHandler(caplog.handler)
    try:
        client.post("/api/users/register", json={
            "email": "carol@example.com", "password": "secret123", "name": "Carol",
        })
        client.post("/api/users/register", json={
            "email": "carol@example.com", "password": "secret123", "name": "Carol",
        })
    finally:
        package_logger.removeHandler(caplog.handler)

    messages = [record.getMessage() for record in caplog.records]
    assert any("c***@example.com" in m for m in messages)
    assert not any("carol@example.com" in m for m in messages)
