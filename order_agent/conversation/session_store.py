"""
Process-scoped conversation sessions keyed by canonical customer id.

Sessions live in a bounded cache with a sliding TTL. Each identity has
its own asyncio.Lock, so messages from one customer are handled strictly
in arrival order while different customers proceed concurrently.

An entry is pinned while any handler holds or waits for its lock, so it
is never expired or evicted between one handler releasing the lock and
the next queued handler resuming. Pinned entries may push the cache
past ``max_sessions`` for a while; the overflow is trimmed on later
inserts. An evicted identity simply gets a fresh, uninitialized Session
on its next message, which makes the coordinator hydrate it from the
ledger again.

Usage:
    store = SessionStore()
    async with store.acquire(identity.canonical_id) as session:
        session.add_turn(Role.USER, "oi")
"""

import asyncio
import logging
import time
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Optional

from order_agent.config import settings
from order_agent.schemas.customer_schema import Session

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    session: Session
    expires_at: float
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    # Handlers holding or queued on the lock.
    users: int = 0

    @property
    def pinned(self) -> bool:
        return self.users > 0


class SessionStore:
    """Bounded, TTL-evicting map from canonical id to Session."""

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_sessions: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.sessions.ttl_seconds
        self.max_sessions = max_sessions if max_sessions is not None else settings.sessions.max_sessions
        self._clock = clock
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, canonical_id: object) -> bool:
        return canonical_id in self._entries

    def _entry(self, canonical_id: str) -> _Entry:
        now = self._clock()
        entry = self._entries.get(canonical_id)
        if entry is not None and entry.expires_at <= now and not entry.pinned:
            logger.debug("Session for %s expired", canonical_id)
            del self._entries[canonical_id]
            entry = None

        if entry is None:
            entry = _Entry(session=Session(), expires_at=now + self.ttl_seconds)
            self._entries[canonical_id] = entry
            self._evict_overflow(keep=canonical_id)
        else:
            entry.expires_at = now + self.ttl_seconds
            self._entries.move_to_end(canonical_id)
        return entry

    def _evict_overflow(self, keep: str) -> None:
        """Drop least recently used, unpinned entries other than ``keep``."""
        if len(self._entries) <= self.max_sessions:
            return
        for key in list(self._entries):
            if len(self._entries) <= self.max_sessions:
                break
            if key == keep or self._entries[key].pinned:
                continue
            del self._entries[key]
            logger.info("Evicted least recently used session %s", key)

    def get(self, canonical_id: str) -> Session:
        """Return the live session for this id, creating it if needed."""
        return self._entry(canonical_id).session

    @asynccontextmanager
    async def acquire(self, canonical_id: str) -> AsyncIterator[Session]:
        """Hold this identity's lock for the duration of one message."""
        entry = self._entry(canonical_id)
        entry.users += 1
        try:
            async with entry.lock:
                entry.expires_at = self._clock() + self.ttl_seconds
                yield entry.session
        finally:
            entry.users -= 1

    def sweep_expired(self) -> int:
        """Drop expired, unpinned sessions. Returns how many were removed."""
        now = self._clock()
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.expires_at <= now and not entry.pinned
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info("Swept %d expired sessions", len(expired))
        return len(expired)
