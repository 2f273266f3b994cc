"""Tests for health check and bearer authentication."""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.auth.security import create_access_token
from app.db import get_db
from app.main import create_app


@pytest.fixture
def auth_client(db, monkeypatch):
    """Client with real authentication (only the db is overridden)."""
    monkeypatch.setenv("DISABLE_AUTH", "false")
    app = create_app(testing=True)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health(auth_client):
    r = auth_client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_missing_token_is_unauthorized(auth_client):
    r = auth_client.get("/conversations")
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized"}


def test_invalid_token_is_unauthorized(auth_client):
    r = auth_client.get("/conversations", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid token"}


def test_valid_token_scopes_to_user(auth_client):
    user_id = uuid4()
    headers = {"Authorization": f"Bearer {create_access_token(user_id)}"}
    created = auth_client.post(
        "/conversations",
        json={"platform": "ai", "recipient": "Assistant"},
        headers=headers,
    )
    assert created.status_code == 201
    assert created.json()["owner_user_id"] == str(user_id)

    other = {"Authorization": f"Bearer {create_access_token(uuid4())}"}
    assert auth_client.get("/conversations", headers=other).json()["items"] == []


def test_disabled_auth_allows_anonymous_access(auth_client, monkeypatch):
    monkeypatch.setenv("DISABLE_AUTH", "true")
    assert auth_client.get("/conversations").status_code == 200
