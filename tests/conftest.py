"""Shared test fixtures."""

import os

# Settings are read at import time; unit tests never reach Redis or PG.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import uuid  # noqa: E402
from datetime import UTC, datetime  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.gb_common.database import get_db_session  # noqa: E402
from src.gb_gateway.auth.dependencies import get_current_user  # noqa: E402
from src.gb_gateway.user.db_models import UserModel  # noqa: E402
from src.main import app  # noqa: E402

CURRENT_USER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")


def make_user(user_id: uuid.UUID = CURRENT_USER_ID, is_active: bool = True) -> UserModel:
    user = UserModel()
    user.id = user_id
    user.name = "Alice"
    user.email = "alice@example.com"
    user.password_hash = "$2b$12$fakehash"
    user.is_active = is_active
    user.created_at = datetime.now(UTC)
    return user


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints (no auth override)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def auth_client() -> AsyncClient:
    """Client whose requests run as CURRENT_USER_ID against a mocked session."""

    async def _db():
        yield AsyncMock()

    app.dependency_overrides[get_db_session] = _db
    app.dependency_overrides[get_current_user] = lambda: make_user()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
