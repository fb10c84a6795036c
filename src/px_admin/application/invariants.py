# src/px_admin/application/invariants.py
"""Canvas-wide consistency audit.

Each check is one aggregate query; a non-zero count (or any duplicate pixel)
is reported as a violation string and logged at ERROR.
"""
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.px_pixel.domain.models import TOTAL_PIXELS

logger = logging.getLogger(__name__)

_PIXEL_COUNT_SQL = text("SELECT COUNT(*) FROM pixels")

# A claimed pixel must point at an existing order that lists it
_DANGLING_SQL = text("""
    SELECT COUNT(*)
    FROM pixels p
    LEFT JOIN orders o ON o.id = p.order_id
    WHERE p.status <> 'free'
      AND (o.id IS NULL OR NOT (p.pixel_id = ANY(o.pixel_ids)))
""")
_RESERVED_NOT_PENDING_SQL = text("""
    SELECT COUNT(*)
    FROM pixels p JOIN orders o ON o.id = p.order_id
    WHERE p.status = 'reserved' AND o.status <> 'pending'
""")
_SOLD_NOT_PAID_SQL = text("""
    SELECT COUNT(*)
    FROM pixels p JOIN orders o ON o.id = p.order_id
    WHERE p.status = 'sold' AND o.status <> 'paid'
""")
# Every pixel of a live order must point back at that order
_UNBACKED_SQL = text("""
    SELECT COUNT(*)
    FROM orders o
    CROSS JOIN LATERAL unnest(o.pixel_ids) AS pid
    LEFT JOIN pixels p ON p.pixel_id = pid
    WHERE o.status IN ('pending', 'paid')
      AND p.order_id IS DISTINCT FROM o.id
""")
_DOUBLE_CLAIMED_SQL = text("""
    SELECT pid
    FROM orders o
    CROSS JOIN LATERAL unnest(o.pixel_ids) AS pid
    WHERE o.status <> 'expired'
    GROUP BY pid
    HAVING COUNT(*) > 1
    ORDER BY pid
    LIMIT 20
""")

_COUNT_CHECKS = (
    ("claimed pixels without a matching order", _DANGLING_SQL),
    ("reserved pixels whose order is not pending", _RESERVED_NOT_PENDING_SQL),
    ("sold pixels whose order is not paid", _SOLD_NOT_PAID_SQL),
    ("live-order pixels not pointing back at their order", _UNBACKED_SQL),
)


async def verify_canvas_invariants(db: AsyncSession) -> list[str]:
    """Returns a list of violation strings; empty means the canvas is consistent."""
    violations: list[str] = []

    total = (await db.execute(_PIXEL_COUNT_SQL)).scalar_one()
    if total != TOTAL_PIXELS:
        violations.append(f"pixel count {total} != {TOTAL_PIXELS}")

    for label, sql in _COUNT_CHECKS:
        count = (await db.execute(sql)).scalar_one()
        if count:
            violations.append(f"{count} {label}")

    doubled = list((await db.execute(_DOUBLE_CLAIMED_SQL)).scalars().all())
    if doubled:
        violations.append(
            "pixels listed by more than one live order: "
            + ", ".join(str(p) for p in doubled)
        )

    for msg in violations:
        logger.error("Canvas invariant violated: %s", msg)
    return violations
