# tests/conftest.py
import os

# Settings are read at import time; JWT_SECRET has no default
os.environ.setdefault("JWT_SECRET", "test-signing-secret-0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

from collections.abc import Generator
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from app.core.rate_limit import auth_limiter, default_limiter
from app.core.security import hash_password
from app.core.validators import format_cpf
from app.database.supabase_client import get_supabase
from app.main import app
from tests.fake_supabase import FakeSupabase

DEFAULT_PASSWORD = "secret1"


@pytest.fixture(autouse=True)
def reset_rate_limits() -> Generator[None, None, None]:
    """Every test starts with empty rate-limit windows."""
    auth_limiter.reset()
    default_limiter.reset()
    yield
    auth_limiter.reset()


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def client(fake_db: FakeSupabase) -> Generator[TestClient, None, None]:
    """TestClient wired to the in-memory Supabase fake."""
    app.dependency_overrides[get_supabase] = lambda: fake_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def make_user(
    fake_db: FakeSupabase,
    email: str = "ana@example.com",
    password: str = DEFAULT_PASSWORD,
    name: str = "Ana",
    cpf: str = "12345678909",
    active: bool = True,
    **extra: Any,
) -> Dict[str, Any]:
    """Insert a user row directly, the way an activated account looks in the database."""
    row = {
        "name": name,
        "email": email,
        "cpf": format_cpf(cpf),
        "password_hash": hash_password(password),
        "active": active,
        "failed_login_count": 0,
        "locked_until": None,
        "last_login_at": None,
    }
    row.update(extra)
    return fake_db.table("users").insert(row).execute().data[0]


def login(client: TestClient, email: str = "ana@example.com", password: str = DEFAULT_PASSWORD) -> str:
    response = client.post("/api/v1/auth/login", json={"email": email, "senha": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(fake_db: FakeSupabase) -> Dict[str, Any]:
    return make_user(fake_db)


@pytest.fixture
def token(client: TestClient, user: Dict[str, Any]) -> str:
    return login(client)
