# tests/unit/test_expiry_and_races.py
"""Expiry sweep, settle/sweep races and concurrent reservations."""
import asyncio

import pytest

from src.px_common.errors import InvalidOrderStateError, PixelsUnavailableError
from src.px_order.application.schemas import CreateOrderRequest
from src.px_order.application.service import OrderApplicationService
from src.px_pixel.domain.models import TOTAL_PIXELS


@pytest.fixture
def svc(order_repo, pixel_repo, clock) -> OrderApplicationService:
    return OrderApplicationService(order_repo=order_repo, pixel_repo=pixel_repo, clock=clock)


def _req(pixel_ids: list[int]) -> CreateOrderRequest:
    return CreateOrderRequest(pixel_ids=pixel_ids, color="#ff0000", link="https://a.com")


class TestSweepExpired:
    async def test_overdue_order_expires_and_frees_pixels(self, svc, store, clock) -> None:
        res = await svc.create_order(store.session(), _req([1, 2]))
        clock.advance(minutes=20, seconds=1)

        swept = await svc.sweep_expired(store.session())

        assert swept.expired == 1
        assert swept.order_ids == [res.order_id]
        order = store.order(res.order_id)
        assert order.is_expired
        for pid in (1, 2):
            px = store.pixel(pid)
            assert (px.status, px.color, px.link, px.order_id) == ("free", None, None, None)

    async def test_order_not_yet_due_is_untouched(self, svc, store, clock) -> None:
        res = await svc.create_order(store.session(), _req([1]))
        clock.advance(minutes=19)

        swept = await svc.sweep_expired(store.session())

        assert swept.expired == 0
        assert store.order(res.order_id).is_pending
        assert store.pixel(1).status == "reserved"

    async def test_sweeping_twice_is_noop(self, svc, store, clock) -> None:
        await svc.create_order(store.session(), _req([1]))
        clock.advance(minutes=30)
        await svc.sweep_expired(store.session())
        commits = store.commits

        again = await svc.sweep_expired(store.session())

        assert again.expired == 0
        assert store.counts()["reserved"] == 0
        # expire_due still takes the write lock, so one (empty) commit happens
        assert store.commits == commits + 1

    async def test_paid_order_never_expires(self, svc, store, clock) -> None:
        res = await svc.create_order(store.session(), _req([9]))
        await svc.settle(store.session(), order_id=res.order_id)
        clock.advance(days=2)

        swept = await svc.sweep_expired(store.session())

        assert swept.expired == 0
        assert store.order(res.order_id).is_paid
        assert store.pixel(9).status == "sold"

    async def test_expired_orders_are_retained(self, svc, store, clock) -> None:
        res = await svc.create_order(store.session(), _req([1]))
        clock.advance(minutes=21)
        await svc.sweep_expired(store.session())

        listed = await svc.list_orders(store.session(), "expired", None, 10)

        assert [o.id for o in listed.items] == [res.order_id]


class TestRaces:
    async def test_settle_and_sweep_at_deadline_commit_exactly_one(
        self, svc, store, clock
    ) -> None:
        res = await svc.create_order(store.session(), _req([10, 11]))
        clock.advance(minutes=20, seconds=1)

        settled, swept = await asyncio.gather(
            svc.settle(store.session(), order_id=res.order_id),
            svc.sweep_expired(store.session()),
            return_exceptions=True,
        )

        order = store.order(res.order_id)
        if isinstance(settled, InvalidOrderStateError):
            assert swept.expired == 1
            assert order.is_expired
            assert store.pixel(10).is_free
        else:
            assert swept.expired == 0
            assert order.is_paid
            assert store.pixel(10).status == "sold"
        assert store.violations() == []

    async def test_race_resolves_either_way_round(self, svc, store, clock) -> None:
        res = await svc.create_order(store.session(), _req([12]))
        clock.advance(minutes=20, seconds=1)

        swept, settled = await asyncio.gather(
            svc.sweep_expired(store.session()),
            svc.settle(store.session(), order_id=res.order_id),
            return_exceptions=True,
        )

        outcomes = {store.order(res.order_id).status}
        assert outcomes <= {"paid", "expired"}
        assert isinstance(settled, InvalidOrderStateError) == (swept.expired == 1)
        assert store.violations() == []

    async def test_overlapping_reservations_yield_exactly_one_winner(self, svc, store) -> None:
        requests = [_req([100, 101, 200 + k]) for k in range(10)]

        results = await asyncio.gather(
            *(svc.create_order(store.session(), r) for r in requests),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, Exception)]
        losers = [r for r in results if isinstance(r, Exception)]
        assert len(winners) == 1
        assert all(isinstance(e, PixelsUnavailableError) for e in losers)
        assert all(e.pixel_ids == [100, 101] for e in losers)
        assert store.counts()["reserved"] == 3
        assert len(store.committed.orders) == 1
        assert store.violations() == []

    async def test_disjoint_reservations_all_succeed(self, svc, store) -> None:
        results = await asyncio.gather(
            *(svc.create_order(store.session(), _req([k * 10, k * 10 + 1])) for k in range(8))
        )

        assert len({r.reference for r in results}) == 8
        assert store.counts()["reserved"] == 16
        assert store.violations() == []


class TestConservation:
    async def test_counts_always_sum_to_canvas_size(self, svc, store, clock, pixel_repo) -> None:
        a = await svc.create_order(store.session(), _req([1, 2, 3]))
        await svc.create_order(store.session(), _req([4, 5]))
        await svc.settle(store.session(), order_id=a.order_id)
        clock.advance(minutes=30)
        await svc.sweep_expired(store.session())
        await svc.create_order(store.session(), _req([5, 6]))

        counts = store.counts()
        assert sum(counts.values()) == TOTAL_PIXELS
        assert counts == {"free": TOTAL_PIXELS - 5, "reserved": 2, "sold": 3}
        assert store.violations() == []
