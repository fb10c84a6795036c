# tests/integration/test_canvas_flow.py
"""End-to-end canvas flows against PostgreSQL: reserve, pay, cancel, race.

Pixel ids are drawn at random from the upper half of the canvas so repeated
runs against the same database rarely collide. Pending orders a test creates
are cancelled before it returns.
"""

import asyncio
import random

import pytest
from httpx import AsyncClient

from config.settings import settings

pytestmark = pytest.mark.asyncio(loop_scope="session")


def _pick(n: int) -> list[int]:
    return random.sample(range(500_000, 1_000_000), n)


async def _reserve(client: AsyncClient, pixel_ids: list[int]):
    return await client.post(
        "/api/v1/orders", json={"pixel_ids": pixel_ids, "color": "#336699"}
    )


async def _cancel(client: AsyncClient, headers: dict[str, str], order_id: str) -> None:
    await client.post(f"/api/v1/admin/orders/{order_id}/cancel", headers=headers)


class TestReserveAndPay:
    async def test_webhook_sells_pixels(self, client: AsyncClient) -> None:
        pixel_ids = _pick(3)
        created = (await _reserve(client, pixel_ids)).json()["data"]

        resp = await client.post(
            "/api/v1/webhooks/payment",
            json={"data": {"status": "successful", "tx_ref": created["reference"]}},
            headers={"verif-hash": settings.PAYMENT_WEBHOOK_HASH},
        )
        poll = await client.get(f"/api/v1/orders/{created['reference']}")
        sold = await client.get("/api/v1/pixels", params={"status": "sold"})

        assert resp.status_code == 200
        assert poll.json()["data"]["status"] == "paid"
        sold_ids = {p["id"] for p in sold.json()["data"]["pixels"]}
        assert set(pixel_ids) <= sold_ids

    async def test_cancel_releases_pixels(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        pixel_ids = _pick(2)
        created = (await _reserve(client, pixel_ids)).json()["data"]

        resp = await client.post(
            f"/api/v1/admin/orders/{created['order_id']}/cancel", headers=admin_headers
        )
        again = await _reserve(client, pixel_ids)

        assert resp.json()["data"]["released_pixels"] == 2
        assert again.status_code == 201
        await _cancel(client, admin_headers, again.json()["data"]["order_id"])


class TestConcurrency:
    async def test_overlapping_reservations_have_one_winner(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        shared = _pick(1)[0]
        selections = [[shared, p] for p in _pick(10)]

        responses = await asyncio.gather(*(_reserve(client, ids) for ids in selections))

        winners = [r for r in responses if r.status_code == 201]
        losers = [r for r in responses if r.status_code != 201]
        assert len(winners) == 1
        assert all(r.status_code == 409 for r in losers)
        assert all(shared in r.json()["data"]["pixel_ids"] for r in losers)
        await _cancel(client, admin_headers, winners[0].json()["data"]["order_id"])

    async def test_canvas_invariants_hold(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        resp = await client.get("/api/v1/admin/invariants", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json()["data"] == {"ok": True, "violations": []}

    async def test_stats_cover_whole_canvas(self, client: AsyncClient) -> None:
        stats = (await client.get("/api/v1/pixels/stats")).json()["data"]
        assert stats["free"] + stats["reserved"] + stats["sold"] == 1_000_000
