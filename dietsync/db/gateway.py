"""Persistence gateway interface and the HTTP client for the /sync API."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from dietsync.config import get_settings
from dietsync.errors import (
    BackendError,
    NotFoundError,
    UnauthorizedError,
    UnknownError,
    error_for_status,
)
from dietsync.models.bundle import SyncKey

logger = logging.getLogger(__name__)

# Set by the identity provider in front of the API.
USER_ID_HEADER = "X-User-Id"


class PersistenceGateway(ABC):
    """Remote key-value store holding one JSON value per (user, key)."""

    @abstractmethod
    async def fetch(self, user_id: str, key: SyncKey) -> Any:
        """Return the stored JSON value. Raise NotFoundError if the key was never stored."""
        pass

    @abstractmethod
    async def upsert(self, user_id: str, key: SyncKey, value: Any) -> None:
        """Store a JSON value, replacing whatever was there."""
        pass

    async def aclose(self) -> None:
        """Release network resources."""
        pass


class HttpGateway(PersistenceGateway):
    """Talks to the Diet Sync API over HTTP."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.sync_api_url).rstrip("/")
        self.timeout = timeout or settings.request_timeout_seconds
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)

    async def fetch(self, user_id: str, key: SyncKey) -> Any:
        response = await self._request("GET", user_id, key, params={"key": key.value})
        try:
            data = response.json().get("data")
        except (ValueError, AttributeError) as e:
            raise UnknownError(f"Malformed response for {key.value}", key.value) from e
        if data is None:
            raise NotFoundError(f"{key.value} not stored", key.value)
        return data

    async def upsert(self, user_id: str, key: SyncKey, value: Any) -> None:
        await self._request("POST", user_id, key, json={"key": key.value, "data": value})

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(self, method: str, user_id: str, key: SyncKey, **kwargs) -> httpx.Response:
        if not user_id:
            raise UnauthorizedError("No user id", key.value)

        try:
            response = await self.client.request(
                method,
                "/sync",
                headers={USER_ID_HEADER: user_id},
                timeout=self.timeout,
                **kwargs,
            )
        except httpx.TimeoutException as e:
            raise BackendError(f"Timed out syncing {key.value}", key.value) from e
        except httpx.HTTPError as e:
            raise BackendError(f"Network error syncing {key.value}: {e}", key.value) from e
        except Exception as e:
            logger.error(f"Unexpected error syncing {key.value}: {e}", exc_info=True)
            raise UnknownError(str(e), key.value) from e

        if response.status_code != 200:
            raise error_for_status(response.status_code, response.text, key.value)
        return response
