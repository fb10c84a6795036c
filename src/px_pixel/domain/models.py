"""Pixel domain models: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass

from src.px_common.enums import PixelStatus

GRID_WIDTH = 1000
GRID_HEIGHT = 1000
TOTAL_PIXELS = GRID_WIDTH * GRID_HEIGHT


def is_valid_pixel_id(pixel_id: int) -> bool:
    # bool is an int subclass; True/False are not pixel ids
    return (
        isinstance(pixel_id, int)
        and not isinstance(pixel_id, bool)
        and 0 <= pixel_id < TOTAL_PIXELS
    )


def pixel_coordinates(pixel_id: int) -> tuple[int, int]:
    """42 -> (42, 0); 1001 -> (1, 1)."""
    return pixel_id % GRID_WIDTH, pixel_id // GRID_WIDTH


@dataclass
class Pixel:
    id: int
    status: str  # free / reserved / sold
    color: str | None = None
    link: str | None = None
    order_id: str | None = None

    @property
    def is_free(self) -> bool:
        return self.status == PixelStatus.FREE.value

    @property
    def x(self) -> int:
        return pixel_coordinates(self.id)[0]

    @property
    def y(self) -> int:
        return pixel_coordinates(self.id)[1]


@dataclass
class PixelStats:
    """Derived counts. `free` is computed so the three always sum to TOTAL_PIXELS."""

    reserved: int
    sold: int

    @property
    def free(self) -> int:
        return TOTAL_PIXELS - self.reserved - self.sold
