# tests/unit/test_database_transaction.py
"""transaction(): commit on success, roll back on error, map store outages."""
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from src.px_common.database import transaction
from src.px_common.errors import InvalidPixelSelectionError, StoreUnavailableError


async def test_commits_on_success() -> None:
    db = AsyncMock()

    async with transaction(db) as session:
        assert session is db

    db.commit.assert_awaited_once()
    db.rollback.assert_not_awaited()


async def test_app_error_rolls_back_and_propagates() -> None:
    db = AsyncMock()

    with pytest.raises(InvalidPixelSelectionError):
        async with transaction(db):
            raise InvalidPixelSelectionError("nope")

    db.rollback.assert_awaited_once()
    db.commit.assert_not_awaited()


async def test_driver_outage_becomes_store_unavailable() -> None:
    db = AsyncMock()

    with pytest.raises(StoreUnavailableError) as exc_info:
        async with transaction(db):
            raise OperationalError("UPDATE pixels", {}, Exception("server closed"))

    assert exc_info.value.http_status == 503
    db.rollback.assert_awaited_once()


async def test_failed_commit_is_an_outage() -> None:
    db = AsyncMock()
    db.commit.side_effect = TimeoutError()

    with pytest.raises(StoreUnavailableError):
        async with transaction(db):
            pass

    db.rollback.assert_awaited_once()


async def test_constraint_errors_are_not_outages() -> None:
    db = AsyncMock()

    with pytest.raises(IntegrityError):
        async with transaction(db):
            raise IntegrityError("INSERT", {}, Exception("duplicate key"))

    db.rollback.assert_awaited_once()
