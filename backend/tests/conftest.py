"""
Shared fixtures: an app on in-memory SQLite with a temporary upload dir,
plus small helpers to create users and capsules through the API.
"""
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from timecapsule.core.config import Settings
from timecapsule.main import create_app


def iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def past(days: int = 1) -> str:
    return iso(datetime.now(timezone.utc) - timedelta(days=days))


def future(days: int = 365) -> str:
    return iso(datetime.now(timezone.utc) + timedelta(days=days))


def auth_headers(user: dict) -> dict:
    return {"X-User-Id": user["id"], "X-User-Email": user["email"]}


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir: Path) -> Settings:
    return Settings(
        database_url="sqlite://",
        upload_dir=str(upload_dir),
        auth_mode="header",
        JWT_SECRET="test-secret",
        log_level="WARNING",
    )


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(client: TestClient):
    def _make(email: str, password: str = "correct-horse") -> dict:
        resp = client.post("/users", json={"email": email, "passwordHash": password})
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make


@pytest.fixture
def owner(make_user) -> dict:
    return make_user("owner@example.com")


@pytest.fixture
def make_capsule(client: TestClient, owner: dict):
    def _make(title: str = "Letter to 2030", unlock_at: str | None = None, message: str | None = None, user: dict | None = None) -> dict:
        user = user or owner
        resp = client.post(
            "/capsules",
            json={"title": title, "unlockAt": unlock_at or future()},
            headers=auth_headers(user),
        )
        assert resp.status_code == 201, resp.text
        capsule = resp.json()
        if message is not None:
            resp = client.post(
                f"/capsules/{capsule['id']}/content",
                json={"message": message},
                headers=auth_headers(user),
            )
            assert resp.status_code == 201, resp.text
        return capsule

    return _make


@pytest.fixture
def db_session(app):
    session = app.state.database.session()
    try:
        yield session
    finally:
        session.close()
