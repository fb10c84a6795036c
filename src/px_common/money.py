"""Flat per-pixel pricing.

Amounts are whole currency units (USD) stored as int. One pixel costs one unit.
"""

PRICE_PER_PIXEL = 1


def order_amount(pixel_count: int) -> int:
    """Price of an order covering `pixel_count` pixels."""
    return pixel_count * PRICE_PER_PIXEL


def amount_to_display(amount: int) -> str:
    """12345 -> '$12,345'."""
    if amount < 0:
        return f"-${-amount:,}"
    return f"${amount:,}"
