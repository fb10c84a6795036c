"""Reservation: check that a pixel set is free and claim it for a new order.

Algorithm (one store transaction, owned by the caller):
  1. validate the request (no store access)
  2. opportunistic expiry sweep, so stale reservations do not conflict
  3. lock the requested pixel rows (ascending id) and read their status
  4. any pixel not free -> PixelsUnavailableError naming all of them
  5. insert the pending order under a fresh unique reference
  6. conditional free -> reserved update on exactly those pixels

Two overlapping reservations serialise on the row locks in step 3: the second
one reads the first one's committed 'reserved' status and fails in step 4.
"""
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.px_common.errors import InternalError, PixelsUnavailableError
from src.px_order.domain.expiry import ExpirySweeper
from src.px_order.domain.models import Appearance, Order, Reservation
from src.px_order.domain.reference import generate_reference
from src.px_order.domain.repository import DuplicateReferenceError, OrderRepositoryProtocol
from src.px_order.domain.validation import validate_selection
from src.px_pixel.domain.repository import PixelRepositoryProtocol

logger = logging.getLogger(__name__)

_MAX_REFERENCE_ATTEMPTS = 3


def _new_order_id() -> str:
    return str(uuid.uuid4())


class ReservationService:
    def __init__(
        self,
        pixel_repo: PixelRepositoryProtocol,
        order_repo: OrderRepositoryProtocol,
        sweeper: ExpirySweeper | None = None,
        ttl: timedelta | None = None,
        max_pixels: int | None = None,
        reference_factory: Callable[[], str] = generate_reference,
        id_factory: Callable[[], str] = _new_order_id,
    ) -> None:
        self._pixels = pixel_repo
        self._orders = order_repo
        self._sweeper = sweeper
        self._ttl = ttl if ttl is not None else timedelta(minutes=settings.ORDER_TTL_MINUTES)
        self._max_pixels = max_pixels if max_pixels is not None else settings.MAX_PIXELS_PER_ORDER
        self._new_reference = reference_factory
        self._new_id = id_factory

    async def create_order(
        self,
        db: AsyncSession,
        pixel_ids: list[int],
        appearance: Appearance,
        now: datetime,
    ) -> Reservation:
        validate_selection(pixel_ids, appearance, self._max_pixels)
        ids = list(pixel_ids)

        if self._sweeper is not None:
            await self._sweeper.sweep_expired(db, now)

        locked = await self._pixels.get_pixels(db, ids, for_update=True)
        if len(locked) != len(ids):
            found = {p.id for p in locked}
            missing = [pid for pid in ids if pid not in found]
            logger.error("Pixel rows missing from store: %s", missing[:10])
            raise InternalError("Pixel store is not initialised")

        unavailable = [p.id for p in locked if not p.is_free]
        if unavailable:
            logger.info(
                "Reservation conflict on %d pixel(s): %s", len(unavailable), unavailable[:10]
            )
            raise PixelsUnavailableError(unavailable)

        order = await self._insert_order(db, ids, appearance, now)

        reserved = await self._pixels.reserve_free(db, ids, order.id)
        if reserved != len(ids):
            # Only possible if the store ignored the row locks; caller rolls back
            current = await self._pixels.get_pixels(db, ids)
            taken = [p.id for p in current if p.order_id != order.id]
            logger.warning(
                "Reserved %d of %d pixels for %s; aborting", reserved, len(ids), order.reference
            )
            raise PixelsUnavailableError(taken or ids)

        logger.info(
            "Order %s (%s) reserved %d pixel(s) until %s",
            order.reference,
            order.id,
            len(ids),
            order.expires_at.isoformat(),
        )
        return Reservation(
            order_id=order.id,
            reference=order.reference,
            amount=order.amount,
            expires_at=order.expires_at,
        )

    async def _insert_order(
        self,
        db: AsyncSession,
        pixel_ids: list[int],
        appearance: Appearance,
        now: datetime,
    ) -> Order:
        for attempt in range(1, _MAX_REFERENCE_ATTEMPTS + 1):
            order = Order(
                id=self._new_id(),
                reference=self._new_reference(),
                pixel_ids=pixel_ids,
                appearance=appearance,
                expires_at=now + self._ttl,
                created_at=now,
            )
            try:
                await self._orders.insert(db, order)
            except DuplicateReferenceError:
                logger.warning(
                    "Reference collision on %s (attempt %d)", order.reference, attempt
                )
                continue
            return order
        raise InternalError("Could not allocate a unique order reference")
