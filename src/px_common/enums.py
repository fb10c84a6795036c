"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class PixelStatus(str, Enum):
    FREE = "free"
    RESERVED = "reserved"
    SOLD = "sold"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    EXPIRED = "expired"


class AppearanceMode(str, Enum):
    """How an order colors its pixels: one color/link for all, or one per pixel."""
    UNIFORM = "uniform"
    INDIVIDUAL = "individual"
