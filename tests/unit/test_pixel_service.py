# tests/unit/test_pixel_service.py
"""PixelQueryService: canvas map and stats, with and without the Redis cache."""
import json
from unittest.mock import AsyncMock, MagicMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from src.px_common.enums import PixelStatus
from src.px_order.application.schemas import CreateOrderRequest
from src.px_order.application.service import OrderApplicationService
from src.px_pixel.application.service import PixelQueryService
from src.px_pixel.domain.models import Pixel, PixelStats
from src.px_pixel.infrastructure.stats_cache import PixelStatsCache


class TestCanvasMap:
    async def test_lists_only_claimed_pixels_with_coordinates(
        self, store, order_repo, pixel_repo, clock
    ) -> None:
        orders = OrderApplicationService(order_repo, pixel_repo, clock)
        res = await orders.create_order(
            store.session(), CreateOrderRequest(pixel_ids=[1001, 3], color="#fff")
        )
        await orders.settle(store.session(), order_id=res.order_id)
        await orders.create_order(store.session(), CreateOrderRequest(pixel_ids=[7], color="#000"))

        svc = PixelQueryService(repo=pixel_repo)
        everything = await svc.list_pixels(store.session())
        sold = await svc.list_pixels(store.session(), "sold")

        assert everything.count == 3
        assert [(p.id, p.status) for p in everything.pixels] == [
            (3, "sold"),
            (7, "reserved"),
            (1001, "sold"),
        ]
        assert (everything.pixels[2].x, everything.pixels[2].y) == (1, 1)
        assert [p.id for p in sold.pixels] == [3, 1001]
        assert sold.pixels[0].color == "#fff"

    async def test_stats_sum_to_canvas(self, store, pixel_repo) -> None:
        stats = await PixelQueryService(repo=pixel_repo).get_stats(store.session())
        assert (stats.total, stats.free, stats.reserved, stats.sold) == (1_000_000, 1_000_000, 0, 0)


class TestStatsCache:
    def _repo(self, stats: PixelStats) -> MagicMock:
        repo = MagicMock()
        repo.get_stats = AsyncMock(return_value=stats)
        return repo

    async def test_cache_hit_skips_store(self) -> None:
        repo = self._repo(PixelStats(reserved=1, sold=1))
        redis = AsyncMock()
        redis.get.return_value = json.dumps({"reserved": 4, "sold": 9})
        with patch(
            "src.px_pixel.infrastructure.stats_cache.get_redis", AsyncMock(return_value=redis)
        ):
            svc = PixelQueryService(repo=repo, cache=PixelStatsCache(ttl_seconds=5))
            stats = await svc.load_stats(AsyncMock())

        assert (stats.reserved, stats.sold) == (4, 9)
        repo.get_stats.assert_not_awaited()

    async def test_cache_miss_reads_store_and_fills(self) -> None:
        repo = self._repo(PixelStats(reserved=2, sold=3))
        redis = AsyncMock()
        redis.get.return_value = None
        with patch(
            "src.px_pixel.infrastructure.stats_cache.get_redis", AsyncMock(return_value=redis)
        ):
            svc = PixelQueryService(repo=repo, cache=PixelStatsCache(ttl_seconds=5))
            stats = await svc.load_stats(AsyncMock())

        assert stats.sold == 3
        redis.set.assert_awaited_once_with(
            "px:pixel_stats", json.dumps({"reserved": 2, "sold": 3}), ex=5
        )

    async def test_redis_down_falls_back_to_store(self) -> None:
        repo = self._repo(PixelStats(reserved=0, sold=7))
        redis = AsyncMock()
        redis.get.side_effect = RedisConnectionError("refused")
        with patch(
            "src.px_pixel.infrastructure.stats_cache.get_redis", AsyncMock(return_value=redis)
        ):
            svc = PixelQueryService(repo=repo, cache=PixelStatsCache(ttl_seconds=5))
            stats = await svc.load_stats(AsyncMock())

        assert stats.sold == 7
        repo.get_stats.assert_awaited_once()

    async def test_zero_ttl_disables_cache(self) -> None:
        repo = self._repo(PixelStats(reserved=0, sold=0))
        get_redis = AsyncMock()
        with patch("src.px_pixel.infrastructure.stats_cache.get_redis", get_redis):
            svc = PixelQueryService(repo=repo, cache=PixelStatsCache(ttl_seconds=0))
            await svc.load_stats(AsyncMock())

        get_redis.assert_not_awaited()
        repo.get_stats.assert_awaited_once()

    def test_pixel_coordinates(self) -> None:
        assert (Pixel(42, "free").x, Pixel(42, "free").y) == (42, 0)
        assert (Pixel(999_999, "free").x, Pixel(999_999, "free").y) == (999, 999)

    def test_only_free_status_is_free(self) -> None:
        assert Pixel(1, PixelStatus.FREE.value).is_free
        assert not Pixel(1, PixelStatus.RESERVED.value, order_id="o1").is_free
        assert not Pixel(1, PixelStatus.SOLD.value, order_id="o1").is_free
