from __future__ import annotations

from typing import Optional, Protocol


class SessionCache(Protocol):
    """TTL key-value store holding the authoritative live-session snapshots."""

    async def get(self, user_id: int) -> Optional[str]:
        ...

    async def set(self, user_id: int, snapshot: str, ttl_seconds: int) -> None:
        ...

    async def renew(self, user_id: int, snapshot: str, ttl_seconds: int) -> bool:
        """Overwrite an existing entry only; False when it is already gone."""
        ...

    async def delete(self, user_id: int) -> None:
        ...

    async def close(self) -> None:
        ...
