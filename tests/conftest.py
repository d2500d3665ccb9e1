"""
Pytest configuration - in-memory MongoDB and a test client per test.
"""
import mongomock
import pytest
from fastapi.testclient import TestClient

from hirepath.core.config import get_settings
from hirepath.db.mongodb import init_mongo_indexes, set_mongo_client
from hirepath.main import create_app
from hirepath.services.google_oauth import GoogleAuthProvider

FRONTEND_URL = "http://frontend.test"


@pytest.fixture(autouse=True)
def mongo_db():
    """Point the app at a fresh mongomock database with the real indexes."""
    client = mongomock.MongoClient()
    set_mongo_client(client)
    init_mongo_indexes()
    yield client[get_settings().mongodb_db]
    set_mongo_client(None)


@pytest.fixture
def google_provider():
    """A configured provider; tests patch its network methods."""
    return GoogleAuthProvider(
        client_id="test-client-id",
        client_secret="test-client-secret",
        callback_url="http://testserver/api/auth/google/callback",
        frontend_url=FRONTEND_URL,
    )


@pytest.fixture
def app(google_provider):
    return create_app(google_provider=google_provider)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def register(client):
    """Register a password user through the API and return {token, user}."""
    def _register(email="alice@example.com", password="secret123", name="Alice"):
        resp = client.post("/api/users/register", json={
            "email": email, "password": password, "name": name,
        })
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _register


@pytest.fixture
def alice(register):
    return register()


@pytest.fixture
def auth_headers(alice):
    return {"Authorization": f"Bearer {alice['token']}"}
