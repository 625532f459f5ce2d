"""Tests for the Supabase-backed gateway."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from dietsync.db.supabase import SupabaseGateway
from dietsync.errors import BackendError, NotFoundError, UnauthorizedError, UnknownError
from dietsync.models.bundle import SyncKey


def make_gateway(rows=None, error=None):
    client = MagicMock()
    select = client.table.return_value.select.return_value.eq.return_value.eq.return_value.limit.return_value
    upsert = client.table.return_value.upsert.return_value
    if error is not None:
        select.execute.side_effect = error
        upsert.execute.side_effect = error
    else:
        select.execute.return_value = SimpleNamespace(data=rows or [])
        upsert.execute.return_value = SimpleNamespace(data=rows or [])
    return SupabaseGateway(client=client, table="user_sync", timeout=1), client


async def test_fetch_returns_data_column():
    gateway, client = make_gateway(rows=[{"data": {"currentStreak": 2, "longestStreak": 2}}])

    value = await gateway.fetch("u1", SyncKey.STREAK)

    assert value == {"currentStreak": 2, "longestStreak": 2}
    client.table.assert_called_with("user_sync")


async def test_fetch_without_row_is_not_found():
    gateway, _ = make_gateway(rows=[])

    with pytest.raises(NotFoundError):
        await gateway.fetch("u1", SyncKey.MEALS)


async def test_upsert_conflicts_on_user_and_key():
    gateway, client = make_gateway()

    await gateway.upsert("u1", SyncKey.GOALS_ACHIEVED, 3)

    client.table.return_value.upsert.assert_called_once_with(
        {"user_id": "u1", "key": "goalsAchieved", "data": 3},
        on_conflict="user_id,key",
    )


async def test_api_error_is_a_backend_error():
    gateway, _ = make_gateway(error=APIError({"message": "relation does not exist"}))

    with pytest.raises(BackendError):
        await gateway.fetch("u1", SyncKey.SETTINGS)
    with pytest.raises(BackendError):
        await gateway.upsert("u1", SyncKey.SETTINGS, {})


async def test_unexpected_error_is_unknown():
    gateway, _ = make_gateway(error=RuntimeError("boom"))

    with pytest.raises(UnknownError):
        await gateway.fetch("u1", SyncKey.SETTINGS)


async def test_missing_user_is_unauthorized():
    gateway, client = make_gateway()

    with pytest.raises(UnauthorizedError):
        await gateway.fetch("", SyncKey.SETTINGS)
    client.table.assert_not_called()
