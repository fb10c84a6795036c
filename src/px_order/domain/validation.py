"""Reservation request validation. Runs before any store access."""

from src.px_common.errors import InvalidPixelSelectionError
from src.px_order.domain.models import Appearance, PerPixelAppearance
from src.px_pixel.domain.models import TOTAL_PIXELS, is_valid_pixel_id


def validate_selection(
    pixel_ids: list[int], appearance: Appearance, max_pixels: int
) -> None:
    """Raise InvalidPixelSelectionError unless the request can be reserved as-is.

    - at least one pixel, at most `max_pixels`
    - every id in [0, TOTAL_PIXELS), no duplicates
    - per-pixel appearance covers exactly the requested ids
    """
    if not pixel_ids:
        raise InvalidPixelSelectionError("no pixels selected")
    if len(pixel_ids) > max_pixels:
        raise InvalidPixelSelectionError(
            f"{len(pixel_ids)} pixels requested, at most {max_pixels} per order"
        )

    out_of_range = [p for p in pixel_ids if not is_valid_pixel_id(p)]
    if out_of_range:
        raise InvalidPixelSelectionError(
            f"pixel ids out of range [0, {TOTAL_PIXELS}): {out_of_range[:10]}"
        )

    seen: set[int] = set()
    dupes: list[int] = []
    for p in pixel_ids:
        if p in seen:
            dupes.append(p)
        seen.add(p)
    if dupes:
        raise InvalidPixelSelectionError(f"duplicate pixel ids: {sorted(set(dupes))[:10]}")

    if isinstance(appearance, PerPixelAppearance):
        keys = set(appearance.pixels)
        missing = seen - keys
        extra = keys - seen
        if missing:
            raise InvalidPixelSelectionError(
                f"missing appearance for pixels: {sorted(missing)[:10]}"
            )
        if extra:
            raise InvalidPixelSelectionError(
                f"appearance given for unselected pixels: {sorted(extra)[:10]}"
            )
