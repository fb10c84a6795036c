"""PixelRepository: concrete implementation of PixelRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Transaction ownership: the CALLER opens and commits the transaction
(`src.px_common.database.transaction`). Row locks taken by `get_pixels(...,
for_update=True)` are held until then.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.px_pixel.domain.models import Pixel, PixelStats

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = "pixel_id, status, color, link, order_id"

_GET_PIXELS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM pixels
    WHERE pixel_id = ANY(CAST(:pixel_ids AS INTEGER[]))
    ORDER BY pixel_id
""")

# Ascending lock order: two overlapping reservations can never deadlock.
_LOCK_PIXELS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM pixels
    WHERE pixel_id = ANY(CAST(:pixel_ids AS INTEGER[]))
    ORDER BY pixel_id
    FOR UPDATE
""")

_RESERVE_FREE_SQL = text("""
    UPDATE pixels
    SET status = 'reserved', order_id = :order_id,
        color = NULL, link = NULL, updated_at = NOW()
    WHERE pixel_id = ANY(CAST(:pixel_ids AS INTEGER[]))
      AND status = 'free'
""")

_MARK_SOLD_SQL = text("""
    UPDATE pixels AS p
    SET status = 'sold', color = u.color, link = u.link, updated_at = NOW()
    FROM unnest(
        CAST(:pixel_ids AS INTEGER[]),
        CAST(:colors AS TEXT[]),
        CAST(:links AS TEXT[])
    ) AS u(pixel_id, color, link)
    WHERE p.pixel_id = u.pixel_id
      AND p.order_id = :order_id
      AND p.status IN ('reserved', 'sold')
""")

_RELEASE_FOR_ORDERS_SQL = text("""
    UPDATE pixels
    SET status = 'free', order_id = NULL, color = NULL, link = NULL, updated_at = NOW()
    WHERE order_id = ANY(CAST(:order_ids AS TEXT[]))
      AND status = 'reserved'
""")

_LIST_CLAIMED_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM pixels
    WHERE status <> 'free'
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY pixel_id
""")

_STATS_SQL = text("""
    SELECT
        COUNT(*) FILTER (WHERE status = 'reserved') AS reserved,
        COUNT(*) FILTER (WHERE status = 'sold')     AS sold
    FROM pixels
    WHERE status <> 'free'
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_pixel(row: Any) -> Pixel:
    return Pixel(
        id=row.pixel_id,
        status=row.status,
        color=row.color,
        link=row.link,
        order_id=row.order_id,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PixelRepository:
    """Concrete repository: every mutation is a single conditional UPDATE."""

    async def get_pixels(
        self, db: AsyncSession, pixel_ids: list[int], for_update: bool = False
    ) -> list[Pixel]:
        sql = _LOCK_PIXELS_SQL if for_update else _GET_PIXELS_SQL
        result = await db.execute(sql, {"pixel_ids": list(pixel_ids)})
        return [_row_to_pixel(row) for row in result.fetchall()]

    async def reserve_free(
        self, db: AsyncSession, pixel_ids: list[int], order_id: str
    ) -> int:
        result = await db.execute(
            _RESERVE_FREE_SQL, {"pixel_ids": list(pixel_ids), "order_id": order_id}
        )
        return result.rowcount  # type: ignore[attr-defined]

    async def mark_sold(
        self,
        db: AsyncSession,
        order_id: str,
        assignments: list[tuple[int, str | None, str | None]],
    ) -> int:
        if not assignments:
            return 0
        pixel_ids, colors, links = (list(col) for col in zip(*assignments))
        result = await db.execute(
            _MARK_SOLD_SQL,
            {
                "order_id": order_id,
                "pixel_ids": pixel_ids,
                "colors": colors,
                "links": links,
            },
        )
        return result.rowcount  # type: ignore[attr-defined]

    async def release_for_orders(self, db: AsyncSession, order_ids: list[str]) -> int:
        if not order_ids:
            return 0
        result = await db.execute(_RELEASE_FOR_ORDERS_SQL, {"order_ids": list(order_ids)})
        return result.rowcount  # type: ignore[attr-defined]

    async def list_claimed(self, db: AsyncSession, status: str | None) -> list[Pixel]:
        result = await db.execute(_LIST_CLAIMED_SQL, {"status": status})
        return [_row_to_pixel(row) for row in result.fetchall()]

    async def get_stats(self, db: AsyncSession) -> PixelStats:
        row = (await db.execute(_STATS_SQL)).fetchone()
        if row is None:
            return PixelStats(reserved=0, sold=0)
        return PixelStats(reserved=int(row.reserved), sold=int(row.sold))
