# src/px_admin/application/service.py
"""Admin application service.

Order mutations delegate to OrderApplicationService so the administrator goes
through the same transactional paths as the webhook and the sweeper.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.px_admin.application.invariants import verify_canvas_invariants
from src.px_admin.application.schemas import AdminStatsResponse, InvariantReport
from src.px_common.money import amount_to_display
from src.px_order.application.schemas import (
    AttachProofRequest,
    AttachProofResponse,
    CancelOrderResponse,
    OrderListResponse,
    OrderOut,
    SettleResponse,
    SweepResponse,
)
from src.px_order.application.service import OrderApplicationService
from src.px_order.domain.repository import OrderRepositoryProtocol
from src.px_order.infrastructure.persistence import OrderRepository
from src.px_pixel.application.service import PixelQueryService

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(
        self,
        orders: OrderApplicationService | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        pixels: PixelQueryService | None = None,
    ) -> None:
        self._orders = orders or OrderApplicationService()
        self._order_repo: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._pixels = pixels or PixelQueryService()

    async def dashboard_stats(self, db: AsyncSession) -> AdminStatsResponse:
        summary = await self._order_repo.get_summary(db)
        pixel_stats = await self._pixels.load_stats(db)
        return AdminStatsResponse.build(summary, pixel_stats, amount_to_display(summary.revenue))

    async def list_orders(
        self, db: AsyncSession, status: str | None, cursor: str | None, limit: int
    ) -> OrderListResponse:
        return await self._orders.list_orders(db, status, cursor, limit)

    async def get_order(self, db: AsyncSession, order_id: str) -> OrderOut:
        return await self._orders.get_order(db, order_id)

    async def mark_paid(self, db: AsyncSession, order_id: str) -> SettleResponse:
        result = await self._orders.settle(db, order_id=order_id)
        logger.info(
            "Admin marked order %s paid (already_paid=%s)", result.reference, result.already_paid
        )
        return result

    async def cancel_order(self, db: AsyncSession, order_id: str) -> CancelOrderResponse:
        return await self._orders.cancel_order(db, order_id)

    async def attach_proof(
        self, db: AsyncSession, order_id: str, req: AttachProofRequest
    ) -> AttachProofResponse:
        return await self._orders.attach_proof(db, req, order_id=order_id, require_pending=False)

    async def sweep(self, db: AsyncSession) -> SweepResponse:
        return await self._orders.sweep_expired(db)

    async def check_invariants(self, db: AsyncSession) -> InvariantReport:
        violations = await verify_canvas_invariants(db)
        return InvariantReport(ok=not violations, violations=violations)
