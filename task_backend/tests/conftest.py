import os
import uuid

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from src.api.credentials import CredentialStore  # noqa: E402
from src.api.main import create_app  # noqa: E402
from src.api.repositories import InMemoryTaskRepository, InMemoryUserRepository  # noqa: E402
from src.api.settings import Settings  # noqa: E402
from src.api.tokens import TokenConfig  # noqa: E402

# bcrypt's minimum cost keeps the suite fast; production uses 12.
TEST_BCRYPT_ROUNDS = 4


def make_settings(**overrides) -> Settings:
    values = {
        "persistence_backend": "memory",
        "sqlite_db_path": "./data/test-tasks.db",
        "cors_allow_origins": ["*"],
        "jwt_secret": f"test-secret-{uuid.uuid4().hex}",
        "jwt_algorithm": "HS256",
        "jwt_expires_days": 30,
        "bcrypt_rounds": TEST_BCRYPT_ROUNDS,
        "environment": "test",
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture()
def settings() -> Settings:
    return make_settings()


@pytest.fixture()
def token_config(settings) -> TokenConfig:
    return TokenConfig.from_settings(settings)


@pytest.fixture()
def app(settings):
    """A fresh app per test so in-memory state never leaks between tests."""
    return create_app(settings)


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture()
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture()
def credentials(users) -> CredentialStore:
    return CredentialStore(users, bcrypt_rounds=TEST_BCRYPT_ROUNDS)


def register_user(client: TestClient, name="John Doe", email=None, password="password123") -> dict:
    """Register through the API and return the response body (token + user)."""
    payload = {"name": name, "email": email or f"user-{uuid.uuid4().hex[:8]}@example.com", "password": password}
    res = client.post("/api/auth/register", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers(client) -> dict:
    return bearer(register_user(client)["token"])
