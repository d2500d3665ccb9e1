"""
Tests for the Google OAuth provider and the sign-in redirect flow.
"""
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from hirepath.core.auth import decode_token
from hirepath.main import create_app
from hirepath.services.auth_service import AuthService
from hirepath.services.google_oauth import (
    GOOGLE_OAUTH_AUTHORIZE, GoogleAuthProvider, GoogleOAuthConfigError,
    GoogleOAuthError, GoogleProfile
)
from hirepath.services.user_service import UserService

FRONTEND_URL = "http://frontend.test"


def mock_response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload or {}
    return resp


@pytest.fixture
def google_success(google_provider, monkeypatch):
    """Make the provider return a fixed Google profile without network calls."""
    profile = GoogleProfile(id="google-42", email="gina@example.com", name="Gina", picture="http://img/g.png")
    monkeypatch.setattr(google_provider, "exchange_code", lambda code: {"access_token": "ya29.token"})
    monkeypatch.setattr(google_provider, "fetch_profile", lambda token: profile)
    return profile


def callback(client, code="auth-code", state="state-1", cookie_state="state-1"):
    if cookie_state:
        client.cookies.set("oauth_state", cookie_state)
    params = {"code": code, "state": state} if code else {"error": "access_denied"}
    return client.get("/api/auth/google/callback", params=params, follow_redirects=False)


# ============================================================
# Provider
# ============================================================

def test_authorization_url(google_provider):
    url = google_provider.authorization_url("xyz")
    assert url.startswith(GOOGLE_OAUTH_AUTHORIZE)
    query = parse_qs(urlparse(url).query)
    assert query["client_id"] == ["test-client-id"]
    assert query["redirect_uri"] == ["http://testserver/api/auth/google/callback"]
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["openid email profile"]
    assert query["state"] == ["xyz"]


def test_missing_credentials_raise_config_error():
    provider = GoogleAuthProvider("", "", "http://api/cb", FRONTEND_URL)
    assert not provider.is_configured
    with pytest.raises(GoogleOAuthConfigError) as exc:
        provider.authorization_url()
    assert exc.value.missing_vars == ["GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"]


def test_exchange_code_posts_to_token_endpoint(google_provider):
    with patch("hirepath.services.google_oauth.requests.post") as post:
        post.return_value = mock_response(payload={"access_token": "abc"})
        tokens = google_provider.exchange_code("the-code")

    assert tokens == {"access_token": "abc"}
    sent = post.call_args.kwargs["data"]
    assert sent["code"] == "the-code"
    assert sent["grant_type"] == "authorization_code"
    assert sent["client_secret"] == "test-client-secret"


def test_exchange_code_rejected(google_provider):
    with patch("hirepath.services.google_oauth.requests.post", return_value=mock_response(400)):
        with pytest.raises(GoogleOAuthError) as exc:
            google_provider.exchange_code("bad")
    assert exc.value.status_code == 400


def test_fetch_profile_normalizes_email(google_provider):
    payload = {"id": 123, "email": " Gina@Example.COM ", "picture": "http://img"}
    with patch("hirepath.services.google_oauth.requests.get", return_value=mock_response(payload=payload)):
        profile = google_provider.fetch_profile("token")
    assert profile.id == "123"
    assert profile.email == "gina@example.com"
    # falls back to the email's local part
    assert profile.name == "gina"


def test_fetch_profile_without_email(google_provider):
    with patch("hirepath.services.google_oauth.requests.get", return_value=mock_response(payload={"id": "1"})):
        with pytest.raises(GoogleOAuthError):
            google_provider.fetch_profile("token")


def test_login_redirect(google_provider):
    assert google_provider.login_redirect(token="abc") == f"{FRONTEND_URL}/login?token=abc#token=abc"
    assert google_provider.login_redirect(error="account_exists") == f"{FRONTEND_URL}/login?error=account_exists"
    assert google_provider.login_redirect() == f"{FRONTEND_URL}/login?error=auth_failed"


# ============================================================
# Sign-in service
# ============================================================

def test_google_sign_in_creates_user(mongo_db):
    profile = GoogleProfile(id="g-1", email="new@example.com", name="New")
    session = AuthService().google_sign_in(profile)

    assert session["user"]["isGoogleUser"] is True
    doc = mongo_db.users.find_one({"email": "new@example.com"})
    assert doc["googleId"] == "g-1"
    assert "password" not in doc


def test_google_sign_in_updates_existing_google_user(mongo_db):
    UserService().create_google_user("g@example.com", "Old Name", "g-1", None)
    profile = GoogleProfile(id="g-1", email="g@example.com", name="New Name", picture="http://pic")

    session = AuthService().google_sign_in(profile)
    assert session["user"]["name"] == "New Name"
    assert session["user"]["picture"] == "http://pic"
    assert mongo_db.users.count_documents({}) == 1


def test_google_sign_in_password_account_conflict(alice):
    from hirepath.core.errors import AccountConflict

    with pytest.raises(AccountConflict):
        AuthService().google_sign_in(GoogleProfile(id="g-9", email="alice@example.com", name="Alice"))


# ============================================================
# Routes
# ============================================================

def test_google_login_redirects_to_consent(client):
    resp = client.get("/api/auth/google", follow_redirects=False)
    assert resp.status_code == 302
    location = resp.headers["location"]
    assert location.startswith(GOOGLE_OAUTH_AUTHORIZE)
    state = parse_qs(urlparse(location).query)["state"][0]
    assert resp.cookies.get("oauth_state") == state


def test_google_login_not_configured():
    provider = GoogleAuthProvider("", "", "http://testserver/api/auth/google/callback", FRONTEND_URL)
    client = TestClient(create_app(google_provider=provider))
    resp = client.get("/api/auth/google", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == f"{FRONTEND_URL}/login?error=server_config"


def test_callback_success_redirects_with_token(client, mongo_db, google_success):
    resp = callback(client)
    assert resp.status_code == 302

    location = resp.headers["location"]
    assert location.startswith(f"{FRONTEND_URL}/login?token=")
    token = parse_qs(urlparse(location).query)["token"][0]
    assert urlparse(location).fragment == f"token={token}"

    user = mongo_db.users.find_one({"email": "gina@example.com"})
    assert decode_token(token)["sub"] == str(user["_id"])
    assert user["isGoogleUser"] is True
    assert resp.cookies.get("auth_token") == token


def test_callback_token_works_for_api(client, google_success):
    location = callback(client).headers["location"]
    token = parse_qs(urlparse(location).query)["token"][0]
    me = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "gina@example.com"


def test_callback_without_code(client):
    resp = callback(client, code=None)
    assert resp.headers["location"] == f"{FRONTEND_URL}/login?error=auth_failed"


def test_callback_state_mismatch(client, google_success):
    resp = callback(client, state="forged")
    assert resp.headers["location"] == f"{FRONTEND_URL}/login?error=auth_failed"


def test_callback_without_state_cookie(client, google_success):
    resp = callback(client, cookie_state=None)
    assert resp.headers["location"] == f"{FRONTEND_URL}/login?error=auth_failed"


def test_callback_existing_password_account(client, alice, google_provider, monkeypatch):
    profile = GoogleProfile(id="g-7", email="alice@example.com", name="Alice")
    monkeypatch.setattr(google_provider, "exchange_code", lambda code: {"access_token": "t"})
    monkeypatch.setattr(google_provider, "fetch_profile", lambda token: profile)

    resp = callback(client)
    assert resp.headers["location"] == f"{FRONTEND_URL}/login?error=account_exists"


def test_callback_google_rejects_code(client, google_provider, monkeypatch):
    def reject(code):
        raise GoogleOAuthError("invalid_grant", status_code=400)
    monkeypatch.setattr(google_provider, "exchange_code", reject)

    resp = callback(client)
    assert resp.headers["location"] == f"{FRONTEND_URL}/login?error=auth_failed"
