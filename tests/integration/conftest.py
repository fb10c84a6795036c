"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across the
entire test session. Requires PostgreSQL with migrations applied
(alembic upgrade head).
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.px_gateway.auth.jwt_handler import create_admin_token


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_admin_token()}"}
