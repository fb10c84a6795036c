# src/px_pixel/domain/repository.py
"""Pixel store Protocol: dependency inversion for testability.

Unit tests inject a double that conforms to this Protocol.
Infrastructure layer provides the real implementation.

Every mutation is conditional on the row's current status/order so that a
caller holding stale information updates nothing rather than the wrong row.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.px_pixel.domain.models import Pixel, PixelStats


class PixelRepositoryProtocol(Protocol):
    async def get_pixels(
        self, db: AsyncSession, pixel_ids: list[int], for_update: bool = False
    ) -> list[Pixel]:
        """Rows for the given ids. `for_update` locks them in ascending id order."""
        ...

    async def reserve_free(
        self, db: AsyncSession, pixel_ids: list[int], order_id: str
    ) -> int:
        """free -> reserved for `order_id`. Returns the number of rows changed."""
        ...

    async def mark_sold(
        self,
        db: AsyncSession,
        order_id: str,
        assignments: list[tuple[int, str | None, str | None]],
    ) -> int:
        """(pixel_id, color, link) -> sold, only for pixels owned by `order_id`."""
        ...

    async def release_for_orders(self, db: AsyncSession, order_ids: list[str]) -> int:
        """reserved -> free for every pixel owned by one of `order_ids`."""
        ...

    async def list_claimed(
        self, db: AsyncSession, status: str | None
    ) -> list[Pixel]:
        """Non-free pixels, optionally restricted to one status."""
        ...

    async def get_stats(self, db: AsyncSession) -> PixelStats: ...
