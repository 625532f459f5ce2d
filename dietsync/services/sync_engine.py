"""Keeps each user's bundle in sync between the local cache and the gateway."""

import asyncio
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from dietsync.config import get_settings
from dietsync.db.gateway import PersistenceGateway
from dietsync.db.local_cache import LocalCache
from dietsync.errors import (
    BadRequestError,
    NotFoundError,
    SyncError,
    UnauthorizedError,
    UnknownError,
)
from dietsync.models.bundle import Bundle, SyncKey, default_value, dump_value, parse_value

logger = logging.getLogger(__name__)

Listener = Callable[[str, Bundle], None]


class SyncSession:
    """State owned by the engine for one signed-in user.

    ``bundle`` is what callers see. ``confirmed`` holds the last value the
    gateway is known to have for each key, ``pending`` the writes still in
    flight as ``(seq, value)`` pairs.
    """

    def __init__(self, user_id: str, bundle: Bundle):
        self.user_id = user_id
        self.bundle = bundle
        self.confirmed: Dict[SyncKey, Tuple[int, Any]] = {k: (0, bundle.get(k)) for k in SyncKey}
        self.pending: Dict[SyncKey, List[Tuple[int, Any]]] = {k: [] for k in SyncKey}
        self.remote_snapshot: Optional[str] = None
        self.errors: Dict[SyncKey, SyncError] = {}
        self.closed = False

    def visible_value(self, key: SyncKey) -> Any:
        """Newest of the confirmed value and any write still in flight."""
        candidates = self.pending[key] + [self.confirmed[key]]
        return max(candidates, key=lambda entry: entry[0])[1]


class SyncEngine:
    """Optimistic read/update interface over a PersistenceGateway.

    Every change to a session's bundle goes through ``_apply``, whether it
    comes from ``load``, ``poll``, ``update`` or a rollback.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        cache: Optional[LocalCache] = None,
        poll_interval: Optional[float] = None,
    ):
        self.gateway = gateway
        self.cache = cache if cache is not None else LocalCache()
        self.poll_interval = poll_interval or get_settings().poll_interval_seconds
        self._sessions: Dict[str, SyncSession] = {}
        self._listeners: List[Listener] = []
        self._seq = itertools.count(1)

    # Session handling
    def hydrate(self, user_id: str) -> Bundle:
        """Bundle built from the local cache alone, for painting before load()."""
        if not user_id:
            raise UnauthorizedError("No user id")
        return self._open(user_id).bundle

    def bundle(self, user_id: str) -> Bundle:
        """Current bundle. Unlike hydrate(), this does not open a session."""
        if not user_id:
            raise UnauthorizedError("No user id")
        session = self._sessions.get(user_id)
        if session is None:
            return self._cached_bundle(user_id)
        return session.bundle

    def errors(self, user_id: str) -> Dict[SyncKey, SyncError]:
        """Errors from the most recent fetch of each key."""
        session = self._sessions.get(user_id)
        return dict(session.errors) if session else {}

    def active_users(self) -> List[str]:
        return list(self._sessions)

    def close(self, user_id: str) -> None:
        """End a session. Results that land afterwards are ignored."""
        session = self._sessions.pop(user_id, None)
        if session:
            session.closed = True

    async def aclose(self) -> None:
        for user_id in list(self._sessions):
            self.close(user_id)
        await self.gateway.aclose()

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener(user_id, bundle)`` whenever a bundle changes."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    # Operations
    async def load(self, user_id: str) -> Bundle:
        """Fetch every key in parallel and return the merged bundle.

        Keys that are not stored get their default. Keys that fail keep the
        locally cached value (or the default) and the error is recorded.
        UnauthorizedError aborts the load.
        """
        if not user_id:
            raise UnauthorizedError("No user id")
        session = self._open(user_id)
        await self._refresh(session, force=True)
        return session.bundle

    async def update(self, user_id: str, key: Any, value: Any) -> Any:
        """Apply ``value`` locally, then persist it.

        On failure the key is rolled back to the value it held before this
        call and the SyncError is raised. Returns the validated value.
        """
        if not user_id:
            raise UnauthorizedError("No user id")
        key = SyncKey.parse(key)
        parsed = parse_value(key, value)
        session = self._open(user_id)

        seq = next(self._seq)
        session.pending[key].append((seq, parsed))
        self._apply(session, {key: parsed})

        try:
            await self.gateway.upsert(user_id, key, dump_value(key, parsed))
        except SyncError as e:
            logger.warning(f"Rolling back {key.value} for {user_id}: {e}")
            self._settle(session, key, seq, ok=False)
            raise
        except Exception as e:
            logger.error(f"Unexpected error persisting {key.value} for {user_id}: {e}", exc_info=True)
            self._settle(session, key, seq, ok=False)
            raise UnknownError(str(e), key.value) from e

        self._settle(session, key, seq, ok=True)
        return parsed

    async def poll(self, user_id: Optional[str] = None) -> None:
        """Re-fetch one session, or every open session, and apply remote changes.

        Polling one user surfaces UnauthorizedError; polling everyone logs it.
        """
        if user_id is not None:
            session = self._sessions.get(user_id)
            if session:
                await self._refresh(session)
            return

        sessions = list(self._sessions.values())
        results = await asyncio.gather(
            *(self._refresh(s) for s in sessions), return_exceptions=True
        )
        for session, result in zip(sessions, results):
            if isinstance(result, BaseException):
                logger.warning(f"Poll failed for {session.user_id}: {result}")

    # Internals
    def _open(self, user_id: str) -> SyncSession:
        session = self._sessions.get(user_id)
        if session is None:
            session = SyncSession(user_id, self._cached_bundle(user_id))
            self._sessions[user_id] = session
        return session

    def _cached_bundle(self, user_id: str) -> Bundle:
        bundle = Bundle()
        for key in SyncKey:
            raw = self.cache.get(user_id, key)
            if raw is None:
                continue
            try:
                bundle = bundle.with_value(key, parse_value(key, raw))
            except BadRequestError:
                logger.warning(f"Ignoring invalid cached {key.value} for {user_id}")
        return bundle

    async def _fetch_key(self, user_id: str, key: SyncKey) -> Any:
        try:
            raw = await self.gateway.fetch(user_id, key)
        except NotFoundError:
            return default_value(key)
        return parse_value(key, raw)

    async def _refresh(self, session: SyncSession, force: bool = False) -> bool:
        """Fetch all keys and apply them if the remote snapshot changed."""
        results = await asyncio.gather(
            *(self._fetch_key(session.user_id, key) for key in SyncKey),
            return_exceptions=True,
        )
        if session.closed:
            return False

        remote: Dict[SyncKey, Any] = {}
        for key, result in zip(SyncKey, results):
            if isinstance(result, UnauthorizedError):
                raise result
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, Exception):
                error = result if isinstance(result, SyncError) else UnknownError(str(result), key.value)
                logger.warning(f"Could not fetch {key.value} for {session.user_id}: {error}")
                session.errors[key] = error
                # keep the last known value
                remote[key] = session.confirmed[key][1]
            else:
                session.errors.pop(key, None)
                remote[key] = result

        snapshot = Bundle(**{k.field_name: v for k, v in remote.items()}).snapshot()
        if not force and snapshot == session.remote_snapshot:
            return False
        session.remote_snapshot = snapshot

        updates = {}
        for key, value in remote.items():
            # a rollback of an in-flight write lands on what the gateway holds
            session.confirmed[key] = (session.confirmed[key][0], value)
            # keys with a write in flight keep their optimistic value
            if session.pending[key]:
                continue
            updates[key] = value
        return self._apply(session, updates)

    def _settle(self, session: SyncSession, key: SyncKey, seq: int, ok: bool) -> None:
        """Resolve one in-flight write and recompute the visible value."""
        entries = session.pending[key]
        value = next(v for s, v in entries if s == seq)
        session.pending[key] = [(s, v) for s, v in entries if s != seq]
        if ok:
            # last response to land wins
            session.confirmed[key] = (seq, value)
        visible = session.visible_value(key)
        if session.closed:
            # the bundle is gone but the cache outlives the session
            self.cache.set(session.user_id, key, dump_value(key, visible))
            return
        self._apply(session, {key: visible})

    def _apply(self, session: SyncSession, updates: Dict[SyncKey, Any]) -> bool:
        """The single mutation point for a session's bundle and the local cache."""
        if not updates or session.closed:
            return False

        before = session.bundle.snapshot()
        bundle = session.bundle
        for key, value in updates.items():
            bundle = bundle.with_value(key, value)
        session.bundle = bundle
        self.cache.set_many(
            session.user_id, {key: dump_value(key, value) for key, value in updates.items()}
        )

        if bundle.snapshot() == before:
            return False
        for listener in list(self._listeners):
            try:
                listener(session.user_id, bundle)
            except Exception as e:
                logger.error(f"Bundle listener failed: {e}", exc_info=True)
        return True
