"""Order domain models: pure dataclasses, no SQLAlchemy dependency.

An order's appearance is a tagged union:

    Appearance = UniformAppearance | PerPixelAppearance

Settlement branches on the type, never on which optional field is populated.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar

from src.px_common.enums import AppearanceMode, OrderStatus
from src.px_common.money import order_amount


@dataclass(frozen=True)
class PixelAppearance:
    color: str | None
    link: str | None = None


@dataclass(frozen=True)
class UniformAppearance:
    """Every pixel of the order gets the same color/link."""

    color: str | None
    link: str | None = None
    mode: ClassVar[AppearanceMode] = AppearanceMode.UNIFORM

    def resolve(self, pixel_id: int) -> PixelAppearance:
        return PixelAppearance(self.color, self.link)


@dataclass(frozen=True)
class PerPixelAppearance:
    """Each pixel carries its own color/link; keys must equal the order's pixel ids."""

    pixels: Mapping[int, PixelAppearance]
    mode: ClassVar[AppearanceMode] = AppearanceMode.INDIVIDUAL

    def resolve(self, pixel_id: int) -> PixelAppearance:
        return self.pixels[pixel_id]


Appearance = UniformAppearance | PerPixelAppearance


@dataclass
class Order:
    id: str
    reference: str
    pixel_ids: list[int]
    appearance: Appearance
    expires_at: datetime
    status: str = OrderStatus.PENDING.value
    amount: int = field(init=False)
    payment_proof_url: str | None = None
    payment_note: str | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.amount = order_amount(len(self.pixel_ids))

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING.value

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID.value

    @property
    def is_expired(self) -> bool:
        return self.status == OrderStatus.EXPIRED.value


@dataclass
class Reservation:
    """Result of a successful createOrder."""

    order_id: str
    reference: str
    amount: int
    expires_at: datetime


@dataclass
class SettlementResult:
    order: Order
    already_paid: bool
    pixels_sold: int


@dataclass
class OrderSummary:
    """Aggregate counts over the orders table."""

    total_orders: int
    pending: int
    paid: int
    expired: int
    revenue: int  # sum(amount) over paid orders
