"""Pydantic schemas for the admin dashboard."""

from pydantic import BaseModel

from src.px_order.domain.models import OrderSummary
from src.px_pixel.domain.models import TOTAL_PIXELS, PixelStats


class AdminStatsResponse(BaseModel):
    total_revenue: int
    total_revenue_display: str
    total_orders: int
    pending_orders: int
    paid_orders: int
    expired_orders: int
    sold_pixels: int
    reserved_pixels: int
    free_pixels: int
    total_pixels: int = TOTAL_PIXELS
    conversion_rate: int  # percent of orders that were paid

    @classmethod
    def build(
        cls, orders: OrderSummary, pixels: PixelStats, revenue_display: str
    ) -> "AdminStatsResponse":
        conversion = round(orders.paid * 100 / orders.total_orders) if orders.total_orders else 0
        return cls(
            total_revenue=orders.revenue,
            total_revenue_display=revenue_display,
            total_orders=orders.total_orders,
            pending_orders=orders.pending,
            paid_orders=orders.paid,
            expired_orders=orders.expired,
            sold_pixels=pixels.sold,
            reserved_pixels=pixels.reserved,
            free_pixels=pixels.free,
            conversion_rate=conversion,
        )


class InvariantReport(BaseModel):
    ok: bool
    violations: list[str]
