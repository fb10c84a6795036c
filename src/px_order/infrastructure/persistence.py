# src/px_order/infrastructure/persistence.py
"""OrderRepository: raw SQL persistence implementation.

Status transitions are conditional UPDATEs on `status = 'pending'`; the
rowcount tells the caller whether its transition won.
"""
import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.px_common.enums import AppearanceMode
from src.px_order.domain.models import (
    Appearance,
    Order,
    OrderSummary,
    PerPixelAppearance,
    PixelAppearance,
    UniformAppearance,
)
from src.px_order.domain.repository import DuplicateReferenceError

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, reference, pixel_ids, amount, status,
        appearance_mode, color, link, individual_data, expires_at, created_at)
    VALUES (:id, :reference, CAST(:pixel_ids AS INTEGER[]), :amount, :status,
        :appearance_mode, :color, :link, CAST(:individual_data AS JSONB),
        :expires_at, :created_at)
""")

_SELECT_COLUMNS = """
    id, reference, pixel_ids, amount, status,
    appearance_mode, color, link, individual_data,
    payment_proof_url, payment_note,
    expires_at, paid_at, created_at, updated_at
"""

_GET_BY_ID_SQL = text(f"SELECT {_SELECT_COLUMNS} FROM orders WHERE id = :key")
_GET_BY_ID_FOR_UPDATE_SQL = text(
    f"SELECT {_SELECT_COLUMNS} FROM orders WHERE id = :key FOR UPDATE"
)
_GET_BY_REFERENCE_SQL = text(f"SELECT {_SELECT_COLUMNS} FROM orders WHERE reference = :key")
_GET_BY_REFERENCE_FOR_UPDATE_SQL = text(
    f"SELECT {_SELECT_COLUMNS} FROM orders WHERE reference = :key FOR UPDATE"
)

_MARK_PAID_SQL = text("""
    UPDATE orders
    SET status = 'paid', paid_at = :paid_at, updated_at = NOW()
    WHERE id = :id AND status = 'pending'
""")

_EXPIRE_DUE_SQL = text("""
    UPDATE orders
    SET status = 'expired', updated_at = NOW()
    WHERE status = 'pending' AND expires_at < :now
    RETURNING id
""")

_ATTACH_PROOF_SQL = text("""
    UPDATE orders
    SET payment_proof_url = COALESCE(:proof_url, payment_proof_url),
        payment_note = COALESCE(:note, payment_note),
        updated_at = NOW()
    WHERE id = :id
""")

_DELETE_ORDER_SQL = text("DELETE FROM orders WHERE id = :id")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE
        (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
        AND (
            CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
            OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
            OR (
                created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
                AND id < CAST(:cursor_id AS TEXT)
            )
        )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_LIST_RECENT_PAID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE status = 'paid'
    ORDER BY paid_at DESC NULLS LAST, created_at DESC
    LIMIT :limit
""")

_SUMMARY_SQL = text("""
    SELECT
        COUNT(*)                                              AS total_orders,
        COUNT(*) FILTER (WHERE status = 'pending')            AS pending,
        COUNT(*) FILTER (WHERE status = 'paid')               AS paid,
        COUNT(*) FILTER (WHERE status = 'expired')            AS expired,
        COALESCE(SUM(amount) FILTER (WHERE status = 'paid'), 0) AS revenue
    FROM orders
""")


# ---------------------------------------------------------------------------
# Appearance (de)serialization
# ---------------------------------------------------------------------------


def _individual_to_json(appearance: PerPixelAppearance) -> str:
    return json.dumps(
        {
            str(pid): {"color": look.color, "link": look.link}
            for pid, look in appearance.pixels.items()
        }
    )


def _appearance_from_row(row: Any) -> Appearance:
    if row.appearance_mode == AppearanceMode.INDIVIDUAL.value:
        data = row.individual_data
        # asyncpg hands JSONB back as text unless a codec is registered
        if isinstance(data, str):
            data = json.loads(data)
        return PerPixelAppearance(
            pixels={
                int(pid): PixelAppearance(look.get("color"), look.get("link"))
                for pid, look in (data or {}).items()
            }
        )
    return UniformAppearance(color=row.color, link=row.link)


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return Order(
        id=row.id,
        reference=row.reference,
        pixel_ids=list(row.pixel_ids),
        appearance=_appearance_from_row(row),
        expires_at=row.expires_at,
        status=row.status,
        payment_proof_url=row.payment_proof_url,
        payment_note=row.payment_note,
        paid_at=row.paid_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def insert(self, db: AsyncSession, order: Order) -> None:
        appearance = order.appearance
        params: dict[str, Any] = {
            "id": order.id,
            "reference": order.reference,
            "pixel_ids": list(order.pixel_ids),
            "amount": order.amount,
            "status": order.status,
            "appearance_mode": appearance.mode.value,
            "color": None,
            "link": None,
            "individual_data": None,
            "expires_at": order.expires_at,
            "created_at": order.created_at,
        }
        if isinstance(appearance, PerPixelAppearance):
            params["individual_data"] = _individual_to_json(appearance)
        else:
            params["color"] = appearance.color
            params["link"] = appearance.link

        # Savepoint: a reference collision must not poison the outer transaction
        try:
            async with db.begin_nested():
                await db.execute(_INSERT_ORDER_SQL, params)
        except IntegrityError as exc:
            if "uq_orders_reference" in str(exc.orig):
                raise DuplicateReferenceError(order.reference) from exc
            raise

    async def get_by_id(
        self, db: AsyncSession, order_id: str, for_update: bool = False
    ) -> Order | None:
        sql = _GET_BY_ID_FOR_UPDATE_SQL if for_update else _GET_BY_ID_SQL
        row = (await db.execute(sql, {"key": order_id})).fetchone()
        return _row_to_order(row) if row else None

    async def get_by_reference(
        self, db: AsyncSession, reference: str, for_update: bool = False
    ) -> Order | None:
        sql = _GET_BY_REFERENCE_FOR_UPDATE_SQL if for_update else _GET_BY_REFERENCE_SQL
        row = (await db.execute(sql, {"key": reference})).fetchone()
        return _row_to_order(row) if row else None

    async def mark_paid(self, db: AsyncSession, order_id: str, paid_at: datetime) -> bool:
        result = await db.execute(_MARK_PAID_SQL, {"id": order_id, "paid_at": paid_at})
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def expire_due(self, db: AsyncSession, now: datetime) -> list[str]:
        result = await db.execute(_EXPIRE_DUE_SQL, {"now": now})
        return [row.id for row in result.fetchall()]

    async def attach_proof(
        self,
        db: AsyncSession,
        order_id: str,
        proof_url: str | None,
        note: str | None,
    ) -> None:
        await db.execute(
            _ATTACH_PROOF_SQL, {"id": order_id, "proof_url": proof_url, "note": note}
        )

    async def delete(self, db: AsyncSession, order_id: str) -> None:
        await db.execute(_DELETE_ORDER_SQL, {"id": order_id})

    async def list_orders(
        self,
        db: AsyncSession,
        status: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Order]:
        result = await db.execute(
            _LIST_ORDERS_SQL,
            {
                "status": status,
                "cursor_ts": cursor_ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_recent_paid(self, db: AsyncSession, limit: int) -> list[Order]:
        result = await db.execute(_LIST_RECENT_PAID_SQL, {"limit": limit})
        return [_row_to_order(row) for row in result.fetchall()]

    async def get_summary(self, db: AsyncSession) -> OrderSummary:
        row = (await db.execute(_SUMMARY_SQL)).fetchone()
        if row is None:
            return OrderSummary(total_orders=0, pending=0, paid=0, expired=0, revenue=0)
        return OrderSummary(
            total_orders=int(row.total_orders),
            pending=int(row.pending),
            paid=int(row.paid),
            expired=int(row.expired),
            revenue=int(row.revenue),
        )
