"""Integration-test fixtures.

These tests need a migrated PostgreSQL and a Redis (``alembic upgrade head``)
and only run when RUN_INTEGRATION=1. All of them share a single event loop
so that the module-level SQLAlchemy async engine pool and Redis pool (both
created at import time) remain valid across the entire test session.
"""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.environ.get("RUN_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set RUN_INTEGRATION=1 to run against PG + Redis")
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
