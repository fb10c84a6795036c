"""Expiry sweep job.

Two ways to run it:
  * in-process: main.py's lifespan starts `run_periodic()` as a background task
  * one-shot, for an external scheduler (cron, k8s CronJob):
        python -m src.px_order.jobs.sweep_expired
"""

import asyncio
import logging

from config.settings import settings
from src.px_common.database import async_session_factory, engine
from src.px_common.errors import AppError
from src.px_order.application.schemas import SweepResponse
from src.px_order.application.service import OrderApplicationService

logger = logging.getLogger(__name__)

_service = OrderApplicationService()


async def sweep_once(service: OrderApplicationService | None = None) -> SweepResponse:
    async with async_session_factory() as db:
        return await (service or _service).sweep_expired(db)


async def run_periodic(
    interval_seconds: float,
    service: OrderApplicationService | None = None,
) -> None:
    """Sweep forever; a failed pass is logged and retried on the next tick."""
    logger.info("Expiry sweeper started, interval=%ss", interval_seconds)
    while True:
        try:
            await sweep_once(service)
        except AppError as exc:
            logger.warning("Expiry sweep failed: %s", exc.message)
        except Exception:
            logger.exception("Expiry sweep crashed")
        await asyncio.sleep(interval_seconds)


async def _main() -> None:
    try:
        result = await sweep_once()
        logger.info("Sweep done: %d order(s) expired", result.expired)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    asyncio.run(_main())
