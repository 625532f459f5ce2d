"""Supabase client and the per-user key-value table behind /sync."""

import asyncio
import logging
from functools import lru_cache
from typing import Any, Callable, Optional

from postgrest.exceptions import APIError
from supabase import create_client, Client

from dietsync.config import get_settings
from dietsync.errors import BackendError, NotFoundError, UnauthorizedError, UnknownError
from dietsync.models.bundle import SyncKey

from .gateway import PersistenceGateway

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """Get cached Supabase client."""
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_key)


class SupabaseGateway(PersistenceGateway):
    """One row per (user_id, key) holding a JSON ``data`` column.

    Expects a table like::

        create table user_sync (
            user_id text not null,
            key text not null,
            data jsonb,
            updated_at timestamptz default now(),
            primary key (user_id, key)
        );
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        table: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.client = client or get_supabase_client()
        self.table = table or settings.sync_table
        self.timeout = timeout or settings.request_timeout_seconds

    async def fetch(self, user_id: str, key: SyncKey) -> Any:
        result = await self._run(self._select, user_id, key)
        if not result.data or result.data[0].get("data") is None:
            raise NotFoundError(f"{key.value} not stored", key.value)
        return result.data[0]["data"]

    async def upsert(self, user_id: str, key: SyncKey, value: Any) -> None:
        await self._run(self._upsert, user_id, key, value)

    def _select(self, user_id: str, key: SyncKey):
        return (
            self.client.table(self.table)
            .select("data")
            .eq("user_id", user_id)
            .eq("key", key.value)
            .limit(1)
            .execute()
        )

    def _upsert(self, user_id: str, key: SyncKey, value: Any):
        # Upsert - replace the row for this user and key
        return (
            self.client.table(self.table)
            .upsert(
                {"user_id": user_id, "key": key.value, "data": value},
                on_conflict="user_id,key",
            )
            .execute()
        )

    async def _run(self, query: Callable, user_id: str, key: SyncKey, *args):
        """Run a blocking query off the event loop with a timeout."""
        if not user_id:
            raise UnauthorizedError("No user id", key.value)

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(query, user_id, key, *args),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise BackendError(f"Timed out syncing {key.value}", key.value) from e
        except APIError as e:
            logger.warning(f"Supabase error for {key.value}: {e}")
            raise BackendError(f"Store failed for {key.value}", key.value) from e
        except Exception as e:
            logger.error(f"Unexpected error for {key.value}: {e}", exc_info=True)
            raise UnknownError(str(e), key.value) from e
