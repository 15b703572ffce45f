"""
Shared fixtures.

Environment defaults are set before any project module is imported so the
module-level ``config`` / ``app`` objects build without a real database.
"""

import os
import tempfile

os.environ.setdefault("JWT_SECRET", "test-suite-signing-secret-0123456789abcdef")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("UPLOAD_DIR", os.path.join(tempfile.gettempdir(), "bookshelf-test-uploads"))
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from config.settings import Settings  # noqa: E402

TEST_SECRET = "test-suite-signing-secret-0123456789abcdef"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        jwt_secret=TEST_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'bookshelf.db'}",
        upload_dir=str(tmp_path / "uploads"),
        bcrypt_rounds=4,
        max_upload_bytes=1024,
    )


@pytest.fixture
def app(settings):
    from main import create_app

    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def alice(client):
    """Register Alice and return her credentials plus a fresh token."""
    creds = {"name": "Alice", "email": "alice@example.com", "password": "pw123"}
    resp = client.post("/register", json=creds)
    assert resp.status_code == 201, resp.text
    token = client.post(
        "/login", json={"email": creds["email"], "password": creds["password"]}
    ).json()["token"]
    return {**creds, "id": resp.json()["user"]["id"], "token": token}


@pytest.fixture
def auth_headers(alice):
    return {"Authorization": f"Bearer {alice['token']}"}
