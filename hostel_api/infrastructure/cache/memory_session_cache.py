from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict, Optional, Tuple


class MemorySessionCache:
    """In-process stand-in for the Redis session cache, for development and tests.

    Entries expire lazily on read. State is per process, so it must not be used
    behind more than one worker.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[int, Tuple[str, float]] = {}
        self._lock = asyncio.Lock()

    async def get(self, user_id: int) -> Optional[str]:
        async with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            snapshot, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[user_id]
                return None
            return snapshot

    async def set(self, user_id: int, snapshot: str, ttl_seconds: int) -> None:
        async with self._lock:
            self._entries[user_id] = (snapshot, self._clock() + max(1, int(ttl_seconds)))

    async def renew(self, user_id: int, snapshot: str, ttl_seconds: int) -> bool:
        async with self._lock:
            entry = self._entries.get(user_id)
            now = self._clock()
            if entry is None or entry[1] <= now:
                self._entries.pop(user_id, None)
                return False
            self._entries[user_id] = (snapshot, now + max(1, int(ttl_seconds)))
            return True

    async def delete(self, user_id: int) -> None:
        async with self._lock:
            self._entries.pop(user_id, None)

    async def close(self) -> None:
        async with self._lock:
            self._entries.clear()
