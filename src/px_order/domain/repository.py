# src/px_order/domain/repository.py
"""OrderRepository Protocol: interface contract for persistence layer."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.px_order.domain.models import Order, OrderSummary


class DuplicateReferenceError(Exception):
    """insert() hit the unique reference constraint; retry with a new reference."""


class OrderRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, order: Order) -> None: ...

    async def get_by_id(
        self, db: AsyncSession, order_id: str, for_update: bool = False
    ) -> Order | None: ...

    async def get_by_reference(
        self, db: AsyncSession, reference: str, for_update: bool = False
    ) -> Order | None: ...

    async def mark_paid(self, db: AsyncSession, order_id: str, paid_at: datetime) -> bool:
        """pending -> paid. False when the order was not pending."""
        ...

    async def expire_due(self, db: AsyncSession, now: datetime) -> list[str]:
        """pending -> expired for every order with expires_at < now. Returns ids."""
        ...

    async def attach_proof(
        self,
        db: AsyncSession,
        order_id: str,
        proof_url: str | None,
        note: str | None,
    ) -> None: ...

    async def delete(self, db: AsyncSession, order_id: str) -> None: ...

    async def list_orders(
        self,
        db: AsyncSession,
        status: str | None,
        cursor_ts: datetime | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Order]: ...

    async def list_recent_paid(self, db: AsyncSession, limit: int) -> list[Order]: ...

    async def get_summary(self, db: AsyncSession) -> OrderSummary: ...
