"""Short-TTL Redis cache for pixel stats.

The value is a JSON object {"reserved": int, "sold": int}; free is always
derived. A cached value can be up to STATS_CACHE_TTL_SECONDS stale.
"""

import json

from config.settings import settings
from src.px_common.redis_client import get_redis
from src.px_pixel.domain.models import PixelStats

_KEY = "px:pixel_stats"


class PixelStatsCache:
    def __init__(self, ttl_seconds: int | None = None) -> None:
        self._ttl = settings.STATS_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    async def get(self) -> PixelStats | None:
        redis = await get_redis()
        raw = await redis.get(_KEY)
        if raw is None:
            return None
        data = json.loads(raw)
        return PixelStats(reserved=int(data["reserved"]), sold=int(data["sold"]))

    async def put(self, stats: PixelStats) -> None:
        redis = await get_redis()
        payload = json.dumps({"reserved": stats.reserved, "sold": stats.sold})
        await redis.set(_KEY, payload, ex=self._ttl)
