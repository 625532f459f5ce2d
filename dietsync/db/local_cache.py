"""File-backed cache of the last known value of every synced key."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dietsync.config import get_settings
from dietsync.models.bundle import SyncKey

logger = logging.getLogger(__name__)


class LocalCache:
    """Mapping of ``<field>_<userId>`` to the JSON-serialised last known value.

    Reads are synchronous so a client can show cached state before the
    first network round trip completes. Every write is flushed to disk.
    Pass ``persist=False`` to keep the cache in memory only.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, persist: bool = True):
        self.path = Path(path or get_settings().local_cache_path)
        self.persist = persist
        self._data: Dict[str, str] = self._read() if persist else {}

    @staticmethod
    def storage_key(user_id: str, key: SyncKey) -> str:
        return f"{key.value}_{user_id}"

    def get(self, user_id: str, key: SyncKey) -> Optional[Any]:
        """Return the cached JSON value, or None if nothing usable is cached."""
        raw = self._data.get(self.storage_key(user_id, key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding corrupt cache entry {self.storage_key(user_id, key)}")
            return None

    def set(self, user_id: str, key: SyncKey, value: Any) -> None:
        self.set_many(user_id, {key: value})

    def set_many(self, user_id: str, values: Dict[SyncKey, Any]) -> None:
        """Store several keys with a single write to disk."""
        if not values:
            return
        for key, value in values.items():
            self._data[self.storage_key(user_id, key)] = json.dumps(value)
        self._flush()

    def delete(self, user_id: str, key: SyncKey) -> None:
        if self._data.pop(self.storage_key(user_id, key), None) is not None:
            self._flush()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read local cache {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _flush(self) -> None:
        if not self.persist:
            return
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(self._data, f)
            os.replace(tmp, self.path)
        except OSError as e:
            logger.warning(f"Could not write local cache {self.path}: {e}")
