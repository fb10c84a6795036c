"""Expiry sweeper: reclaim pixels of pending orders past their deadline.

Safe to run at any frequency and from several processes at once: the order
transition is a conditional UPDATE on status = 'pending', so a paid order is
never expired and an already-expired order is not touched again.
"""
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.px_order.domain.repository import OrderRepositoryProtocol
from src.px_pixel.domain.repository import PixelRepositoryProtocol

logger = logging.getLogger(__name__)


class ExpirySweeper:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol,
        pixel_repo: PixelRepositoryProtocol,
    ) -> None:
        self._orders = order_repo
        self._pixels = pixel_repo

    async def sweep_expired(self, db: AsyncSession, now: datetime) -> list[str]:
        """Expire due orders and free their pixels. Returns the expired order ids.

        Runs within the caller's transaction.
        """
        expired_ids = await self._orders.expire_due(db, now)
        if not expired_ids:
            return []
        released = await self._pixels.release_for_orders(db, expired_ids)
        logger.info(
            "Expired %d order(s), released %d pixel(s): %s",
            len(expired_ids),
            released,
            ", ".join(expired_ids[:10]),
        )
        return expired_ids
