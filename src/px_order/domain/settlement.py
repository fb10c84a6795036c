"""Settlement: pending -> paid for the order, reserved -> sold for its pixels.

Idempotent: settling a paid order succeeds without a status change and
re-applies the per-pixel sold updates (keyed by pixel_id and guarded by
order_id), so a retry after an interrupted settlement completes it and a
repeat call leaves colors/links unchanged.

Races with the expiry sweeper are decided by the conditional pending -> paid
update: if the sweeper committed first, zero rows change and the order is
re-read to report InvalidOrderStateError.
"""
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.px_common.enums import OrderStatus
from src.px_common.errors import InvalidOrderStateError, OrderNotFoundError
from src.px_order.domain.models import Order, SettlementResult
from src.px_order.domain.repository import OrderRepositoryProtocol
from src.px_pixel.domain.repository import PixelRepositoryProtocol

logger = logging.getLogger(__name__)


class SettlementService:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol,
        pixel_repo: PixelRepositoryProtocol,
    ) -> None:
        self._orders = order_repo
        self._pixels = pixel_repo

    async def settle(
        self,
        db: AsyncSession,
        now: datetime,
        *,
        order_id: str | None = None,
        reference: str | None = None,
    ) -> SettlementResult:
        """Settle by order id or by reference (exactly one must be given)."""
        if (order_id is None) == (reference is None):
            raise ValueError("settle() needs exactly one of order_id or reference")
        key = order_id or reference or ""

        if order_id is not None:
            order = await self._orders.get_by_id(db, order_id)
        else:
            order = await self._orders.get_by_reference(db, key)
        if order is None:
            raise OrderNotFoundError(key)

        if order.is_expired:
            raise InvalidOrderStateError(key, order.status, "settled")

        already_paid = order.is_paid
        if not already_paid:
            if await self._orders.mark_paid(db, order.id, now):
                order.status = OrderStatus.PAID.value
                order.paid_at = now
            else:
                order = await self._reread_after_lost_race(db, order, key)
                already_paid = True

        sold = await self._pixels.mark_sold(db, order.id, _assignments(order))
        if sold != len(order.pixel_ids):
            logger.warning(
                "Order %s: %d of %d pixels marked sold", order.reference, sold, len(order.pixel_ids)
            )

        if already_paid:
            logger.info("Settle idempotency hit: order=%s", order.reference)
        else:
            logger.info(
                "Order %s settled: %d pixel(s) sold, amount=%d",
                order.reference,
                sold,
                order.amount,
            )
        return SettlementResult(order=order, already_paid=already_paid, pixels_sold=sold)

    async def _reread_after_lost_race(
        self, db: AsyncSession, order: Order, key: str
    ) -> Order:
        current = await self._orders.get_by_id(db, order.id)
        if current is None:
            raise OrderNotFoundError(key)
        if not current.is_paid:
            raise InvalidOrderStateError(key, current.status, "settled")
        return current


def _assignments(order: Order) -> list[tuple[int, str | None, str | None]]:
    assignments = []
    for pid in order.pixel_ids:
        look = order.appearance.resolve(pid)
        assignments.append((pid, look.color, look.link))
    return assignments
