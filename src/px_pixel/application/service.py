"""PixelQueryService: read-only projections over the pixel store.

No commit/rollback needed. The caller (router) passes the db session.
"""

import logging

from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from src.px_pixel.application.schemas import (
    PixelMapResponse,
    PixelOut,
    PixelStatsResponse,
)
from src.px_pixel.domain.models import PixelStats
from src.px_pixel.domain.repository import PixelRepositoryProtocol
from src.px_pixel.infrastructure.persistence import PixelRepository
from src.px_pixel.infrastructure.stats_cache import PixelStatsCache

logger = logging.getLogger(__name__)


class PixelQueryService:
    def __init__(
        self,
        repo: PixelRepositoryProtocol | None = None,
        cache: PixelStatsCache | None = None,
    ) -> None:
        self._repo: PixelRepositoryProtocol = repo or PixelRepository()
        self._cache = cache

    async def list_pixels(
        self, db: AsyncSession, status: str | None = None
    ) -> PixelMapResponse:
        pixels = await self._repo.list_claimed(db, status)
        return PixelMapResponse(
            pixels=[PixelOut.from_domain(p) for p in pixels],
            count=len(pixels),
        )

    async def get_stats(self, db: AsyncSession) -> PixelStatsResponse:
        return PixelStatsResponse.from_domain(await self.load_stats(db))

    async def load_stats(self, db: AsyncSession) -> PixelStats:
        if self._cache is None or not self._cache.enabled:
            return await self._repo.get_stats(db)

        try:
            cached = await self._cache.get()
        except RedisError as exc:
            logger.warning("Stats cache read failed, falling back to store: %s", exc)
            return await self._repo.get_stats(db)
        if cached is not None:
            return cached

        stats = await self._repo.get_stats(db)
        try:
            await self._cache.put(stats)
        except RedisError as exc:
            logger.warning("Stats cache write failed: %s", exc)
        return stats
