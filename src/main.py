"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.px_admin.api.router import router as admin_router
from src.px_common.database import STORE_FAILURES, engine
from src.px_common.errors import AppError, StoreUnavailableError
from src.px_common.redis_client import close_redis, get_redis
from src.px_common.response import error_response
from src.px_gateway.api.router import router as auth_router
from src.px_gateway.middleware.request_log import RequestLogMiddleware
from src.px_order.api.router import router as order_router
from src.px_order.api.webhook_router import router as webhook_router
from src.px_order.jobs.sweep_expired import run_periodic
from src.px_pixel.api.router import router as pixel_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections, start the sweeper. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    sweeper: asyncio.Task[None] | None = None
    if settings.SWEEP_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(run_periodic(settings.SWEEP_INTERVAL_SECONDS))
    yield
    # Shutdown
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


def _error_json(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_json(request, exc)


async def store_failure_handler(request: Request, exc: Exception) -> JSONResponse:
    # Read paths run outside transaction(); their driver errors land here
    logger.warning("Store unavailable on %s: %s", request.url.path, exc)
    return _error_json(request, StoreUnavailableError())


for _failure in STORE_FAILURES:
    app.add_exception_handler(_failure, store_failure_handler)


app.include_router(auth_router, prefix="/api/v1")
app.include_router(pixel_router, prefix="/api/v1")
app.include_router(order_router, prefix="/api/v1")
app.include_router(webhook_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
