# src/px_order/application/service.py
"""OrderApplicationService: transaction boundary around the order domain.

Every mutating call runs in exactly one store transaction via
`transaction(db)`: commit on success, rollback on any error, store timeouts
surfaced as StoreUnavailableError. Read-only calls run without one.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.px_common.database import transaction
from src.px_common.datetime_utils import Clock, utc_now
from src.px_common.errors import InvalidOrderStateError, OrderNotFoundError
from src.px_common.money import amount_to_display
from src.px_order.application.schemas import (
    AttachProofRequest,
    AttachProofResponse,
    CancelOrderResponse,
    CreateOrderRequest,
    OrderListResponse,
    OrderOut,
    OrderStatusOut,
    RecentPurchaseOut,
    RecentPurchasesResponse,
    ReservationResponse,
    SettleResponse,
    SweepResponse,
    cursor_decode,
    cursor_encode,
)
from src.px_order.domain.cancellation import OrderCancellation
from src.px_order.domain.expiry import ExpirySweeper
from src.px_order.domain.models import Order
from src.px_order.domain.repository import OrderRepositoryProtocol
from src.px_order.domain.reservation import ReservationService
from src.px_order.domain.settlement import SettlementService
from src.px_order.infrastructure.persistence import OrderRepository
from src.px_pixel.domain.repository import PixelRepositoryProtocol
from src.px_pixel.infrastructure.persistence import PixelRepository

logger = logging.getLogger(__name__)


class OrderApplicationService:
    def __init__(
        self,
        order_repo: OrderRepositoryProtocol | None = None,
        pixel_repo: PixelRepositoryProtocol | None = None,
        clock: Clock = utc_now,
        reservation: ReservationService | None = None,
    ) -> None:
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._pixels: PixelRepositoryProtocol = pixel_repo or PixelRepository()
        self._clock = clock
        self._sweeper = ExpirySweeper(self._orders, self._pixels)
        self._reservation = reservation or ReservationService(
            self._pixels, self._orders, sweeper=self._sweeper
        )
        self._settlement = SettlementService(self._orders, self._pixels)
        self._cancellation = OrderCancellation(self._orders, self._pixels)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_order(
        self, db: AsyncSession, req: CreateOrderRequest
    ) -> ReservationResponse:
        appearance = req.to_appearance()
        async with transaction(db):
            res = await self._reservation.create_order(
                db, req.pixel_ids, appearance, self._clock()
            )
        return ReservationResponse(
            order_id=res.order_id,
            reference=res.reference,
            amount=res.amount,
            amount_display=amount_to_display(res.amount),
            expires_at=res.expires_at.isoformat(),
        )

    async def settle(
        self,
        db: AsyncSession,
        *,
        order_id: str | None = None,
        reference: str | None = None,
    ) -> SettleResponse:
        async with transaction(db):
            result = await self._settlement.settle(
                db, self._clock(), order_id=order_id, reference=reference
            )
        return SettleResponse(
            order_id=result.order.id,
            reference=result.order.reference,
            status=result.order.status,
            already_paid=result.already_paid,
            pixels_sold=result.pixels_sold,
        )

    async def sweep_expired(self, db: AsyncSession) -> SweepResponse:
        async with transaction(db):
            expired = await self._sweeper.sweep_expired(db, self._clock())
        return SweepResponse(expired=len(expired), order_ids=expired)

    async def cancel_order(self, db: AsyncSession, order_id: str) -> CancelOrderResponse:
        async with transaction(db):
            order, released = await self._cancellation.cancel(db, order_id)
        return CancelOrderResponse(
            order_id=order.id,
            reference=order.reference,
            previous_status=order.status,
            released_pixels=released,
        )

    async def attach_proof(
        self,
        db: AsyncSession,
        req: AttachProofRequest,
        *,
        order_id: str | None = None,
        reference: str | None = None,
        require_pending: bool = True,
    ) -> AttachProofResponse:
        """Record buyer-submitted payment evidence. Advisory only; never settles."""
        key = order_id or reference or ""
        async with transaction(db):
            if order_id is not None:
                order = await self._orders.get_by_id(db, order_id, for_update=True)
            else:
                order = await self._orders.get_by_reference(db, key, for_update=True)
            if order is None:
                raise OrderNotFoundError(key)
            if require_pending and not order.is_pending:
                raise InvalidOrderStateError(key, order.status, "given a payment proof")
            await self._orders.attach_proof(db, order.id, req.proof_url, req.note)
        logger.info("Payment proof attached to order %s", order.reference)
        return AttachProofResponse(
            reference=order.reference,
            payment_proof_url=req.proof_url or order.payment_proof_url,
            payment_note=req.note or order.payment_note,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_order(self, db: AsyncSession, order_id: str) -> OrderOut:
        return OrderOut.from_domain(await self._require(db, order_id=order_id))

    async def get_order_status(self, db: AsyncSession, reference: str) -> OrderStatusOut:
        return OrderStatusOut.from_domain(await self._require(db, reference=reference))

    async def list_orders(
        self,
        db: AsyncSession,
        status: str | None,
        cursor: str | None,
        limit: int,
    ) -> OrderListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without COUNT(*)
        orders = await self._orders.list_orders(db, status, cursor_ts, cursor_id, limit + 1)
        has_more = len(orders) > limit
        page = orders[:limit]
        return OrderListResponse(
            items=[OrderOut.from_domain(o) for o in page],
            next_cursor=cursor_encode(page[-1]) if has_more and page else None,
            has_more=has_more,
        )

    async def list_recent_purchases(
        self, db: AsyncSession, limit: int
    ) -> RecentPurchasesResponse:
        orders = await self._orders.list_recent_paid(db, limit)
        return RecentPurchasesResponse(items=[RecentPurchaseOut.from_domain(o) for o in orders])

    async def _require(
        self,
        db: AsyncSession,
        *,
        order_id: str | None = None,
        reference: str | None = None,
    ) -> Order:
        if order_id is not None:
            order = await self._orders.get_by_id(db, order_id)
        else:
            order = await self._orders.get_by_reference(db, reference or "")
        if order is None:
            raise OrderNotFoundError(order_id or reference or "")
        return order
