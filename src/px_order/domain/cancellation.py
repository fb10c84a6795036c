"""Administrative cancel: release an unpaid order's pixels and delete it.

Paid orders cannot be cancelled: settlement is one-directional.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.px_common.errors import InvalidOrderStateError, OrderNotFoundError
from src.px_order.domain.models import Order
from src.px_order.domain.repository import OrderRepositoryProtocol
from src.px_pixel.domain.repository import PixelRepositoryProtocol

logger = logging.getLogger(__name__)


class OrderCancellation:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol,
        pixel_repo: PixelRepositoryProtocol,
    ) -> None:
        self._orders = order_repo
        self._pixels = pixel_repo

    async def cancel(self, db: AsyncSession, order_id: str) -> tuple[Order, int]:
        """Returns the deleted order and the number of pixels released."""
        # Row lock: a concurrent settle waits, then finds nothing to settle
        order = await self._orders.get_by_id(db, order_id, for_update=True)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.is_paid:
            raise InvalidOrderStateError(order_id, order.status, "cancelled")

        released = await self._pixels.release_for_orders(db, [order.id])
        await self._orders.delete(db, order.id)
        logger.info(
            "Order %s (%s) cancelled, %d pixel(s) released",
            order.reference,
            order.status,
            released,
        )
        return order, released
