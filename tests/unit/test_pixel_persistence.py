# tests/unit/test_pixel_persistence.py
"""Unit tests for PixelRepository using MagicMock AsyncSession."""
from unittest.mock import AsyncMock, MagicMock

from src.px_pixel.infrastructure.persistence import PixelRepository


def _row(pixel_id: int, status: str = "free", color=None, link=None, order_id=None) -> MagicMock:
    row = MagicMock()
    row.pixel_id = pixel_id
    row.status = status
    row.color = color
    row.link = link
    row.order_id = order_id
    return row


def _db(rowcount: int = 0, rows: list | None = None) -> AsyncMock:
    db = AsyncMock()
    result = MagicMock()
    result.rowcount = rowcount
    result.fetchall.return_value = rows or []
    db.execute.return_value = result
    return db


class TestPixelRepository:
    async def test_get_pixels_for_update_locks_rows(self) -> None:
        db = _db(rows=[_row(5), _row(6, "reserved", order_id="o1")])

        pixels = await PixelRepository().get_pixels(db, [6, 5], for_update=True)

        sql = str(db.execute.call_args[0][0])
        assert "FOR UPDATE" in sql
        assert "ORDER BY pixel_id" in sql
        assert [p.id for p in pixels] == [5, 6]
        assert pixels[1].order_id == "o1"
        assert not pixels[1].is_free

    async def test_plain_read_takes_no_lock(self) -> None:
        db = _db(rows=[_row(5)])
        await PixelRepository().get_pixels(db, [5])
        assert "FOR UPDATE" not in str(db.execute.call_args[0][0])

    async def test_reserve_is_conditional_on_free(self) -> None:
        db = _db(rowcount=2)

        count = await PixelRepository().reserve_free(db, [1, 2], "o1")

        assert count == 2
        assert "status = 'free'" in str(db.execute.call_args[0][0])
        assert db.execute.call_args[0][1] == {"pixel_ids": [1, 2], "order_id": "o1"}

    async def test_mark_sold_unzips_assignments(self) -> None:
        db = _db(rowcount=2)

        count = await PixelRepository().mark_sold(
            db, "o1", [(1, "#fff", None), (2, "#000", "https://a.com")]
        )

        assert count == 2
        params = db.execute.call_args[0][1]
        assert params["pixel_ids"] == [1, 2]
        assert params["colors"] == ["#fff", "#000"]
        assert params["links"] == [None, "https://a.com"]

    async def test_empty_batches_skip_the_store(self) -> None:
        db = _db()
        repo = PixelRepository()
        assert await repo.mark_sold(db, "o1", []) == 0
        assert await repo.release_for_orders(db, []) == 0
        db.execute.assert_not_awaited()

    async def test_release_only_touches_reserved(self) -> None:
        db = _db(rowcount=3)
        assert await PixelRepository().release_for_orders(db, ["o1", "o2"]) == 3
        sql = str(db.execute.call_args[0][0])
        assert "status = 'reserved'" in sql
        assert "order_id = NULL" in sql

    async def test_stats_derives_free(self) -> None:
        db = _db()
        db.execute.return_value.fetchone.return_value = MagicMock(reserved=10, sold=5)

        stats = await PixelRepository().get_stats(db)

        assert (stats.reserved, stats.sold, stats.free) == (10, 5, 999_985)
