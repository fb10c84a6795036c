"""Unit-test fixtures: the in-memory store (see tests/unit/fakes.py) and a settable clock."""
import pytest

from tests.unit.fakes import FakeClock, FakeOrderRepository, FakePixelRepository, FakeStore


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def pixel_repo() -> FakePixelRepository:
    return FakePixelRepository()


@pytest.fixture
def order_repo() -> FakeOrderRepository:
    return FakeOrderRepository()
