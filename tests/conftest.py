"""Shared test fixtures."""

import os

# Settings has no defaults for secrets; set them before anything imports config.
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("ADMIN_PASSWORD_HASH", "unset")
os.environ.setdefault("PAYMENT_WEBHOOK_HASH", "test-webhook-hash")
os.environ.setdefault("STATS_CACHE_TTL_SECONDS", "0")
os.environ.setdefault("SWEEP_INTERVAL_SECONDS", "0")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    from src.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
