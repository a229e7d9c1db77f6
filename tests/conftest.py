"""Shared pytest fixtures."""

from typing import Any
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from finman.app import App
from finman.config import Config
from finman.core.modules.user.models import User
from finman.core.storage import JsonStore
from finman.web.server import create_fastapi_app

ALLOWED_ORIGIN = "http://localhost:5173"


class FakeSocket:
    """Records frames sent to a client; optionally fails every send."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[Any] = []
        self.closed_with: int | None = None
        self.fail = fail

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.closed_with = code

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.sent]


@pytest.fixture
def make_socket():
    return FakeSocket


@pytest.fixture
def fake_socket():
    return FakeSocket()


@pytest.fixture
def config(tmp_path):
    """Config pointing at a throwaway JSON database."""
    return Config(storage="json", json_db_path=str(tmp_path / "db.json"), cors_origins=[ALLOWED_ORIGIN])


@pytest.fixture
def json_store(tmp_path):
    return JsonStore(tmp_path / "store.json")


@pytest.fixture
def client(config):
    """HTTP and WebSocket test client with the application lifespan running."""
    app = App(config, JsonStore(config.json_db_path))
    with TestClient(create_fastapi_app(app, config)) as test_client:
        yield test_client


def register(client: TestClient, name: str = "Jane Doe", email: str = "jane@example.com") -> dict[str, str]:
    """Register a user and return Authorization headers for it."""
    response = client.post("/api/v1/auth/register", json={"name": name, "email": email, "password": "secret123"})
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def register_user(client):
    def _register(name: str = "Jane Doe", email: str = "jane@example.com") -> dict[str, str]:
        return register(client, name, email)

    return _register


@pytest.fixture
def auth_headers(client):
    return register(client)


@pytest.fixture
def admin_headers(client):
    response = client.post("/api/v1/auth/login", json={"email": "admin@example.com", "password": "admin123"})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def mock_user():
    """Create a mock user for testing."""
    return User(
        id=UUID("87654321-4321-8765-4321-876543218765"),
        name="Test User",
        email="test@example.com",
        password_hash="$2b$12$hashed_password_here",
    )
