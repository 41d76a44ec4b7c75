"""Integration-test fixtures (running PostgreSQL + Redis required).

Pre-condition: alembic upgrade head. Collected only with RUN_INTEGRATION=1.

All integration tests share a single event loop so the module-level
SQLAlchemy engine pool and Redis pool stay valid across the session.
"""

import os

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

if os.environ.get("RUN_INTEGRATION") != "1":
    collect_ignore_glob = ["test_*.py"]


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    from src.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
