"""Shared fixtures for Diet Sync tests."""

import asyncio
import copy
from datetime import date, datetime, time, timezone

import pytest

from dietsync.db.gateway import PersistenceGateway
from dietsync.db.local_cache import LocalCache
from dietsync.errors import NotFoundError
from dietsync.models.meal import Meal
from dietsync.services.sync_engine import SyncEngine


class FakeGateway(PersistenceGateway):
    """In-memory gateway whose failures and write timing tests can control."""

    def __init__(self):
        self.store = {}
        self.fetch_errors = {}
        self.upsert_error = None
        self.hold_upserts = False
        self.held = []
        self.fetch_calls = 0
        self.upsert_calls = 0

    async def fetch(self, user_id, key):
        self.fetch_calls += 1
        if key in self.fetch_errors:
            raise self.fetch_errors[key]
        if (user_id, key) not in self.store:
            raise NotFoundError(key.value, key.value)
        return copy.deepcopy(self.store[(user_id, key)])

    async def upsert(self, user_id, key, value):
        self.upsert_calls += 1
        if self.hold_upserts:
            future = asyncio.get_running_loop().create_future()
            self.held.append(future)
            await future
        if self.upsert_error is not None:
            raise self.upsert_error
        self.store[(user_id, key)] = copy.deepcopy(value)


def meal_on(day: date, calories: int, name: str = "Meal") -> Meal:
    return Meal(
        name=name,
        calories=calories,
        timestamp=datetime.combine(day, time(12, 0), tzinfo=timezone.utc),
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def cache(tmp_path):
    return LocalCache(tmp_path / "cache.json")


@pytest.fixture
def engine(gateway, cache):
    return SyncEngine(gateway, cache, poll_interval=30)
