from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as aioredis
from redis import Redis
from redis.exceptions import RedisError

from hostel_api.domain.errors import InfrastructureError

logger = logging.getLogger(__name__)


class RedisSessionCache:
    """Redis-backed session snapshots keyed by user id, expiring via ``SET ... EX``."""

    def __init__(
        self,
        redis_url: str,
        *,
        key_prefix: str = "session:",
        socket_timeout: float = 5.0,
    ) -> None:
        self.redis_url = redis_url
        self._prefix = key_prefix
        self.client = aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    def _key(self, user_id: int) -> str:
        return f"{self._prefix}{user_id}"

    def verify_connection(self) -> None:
        """Assert Redis connectivity before serving requests."""
        # A throwaway sync client keeps the async pool off the startup event loop.
        sync_client = Redis.from_url(self.redis_url, decode_responses=True)
        try:
            sync_client.ping()
        except RedisError as exc:
            raise InfrastructureError("Session cache unavailable") from exc
        finally:
            sync_client.close()

    async def get(self, user_id: int) -> Optional[str]:
        try:
            return await self.client.get(self._key(user_id))
        except RedisError as exc:
            logger.error("Session lookup failed for user %s: %s", user_id, exc)
            raise InfrastructureError("Session cache unavailable") from exc

    async def set(self, user_id: int, snapshot: str, ttl_seconds: int) -> None:
        try:
            await self.client.set(self._key(user_id), snapshot, ex=max(1, int(ttl_seconds)))
        except RedisError as exc:
            logger.error("Session write failed for user %s: %s", user_id, exc)
            raise InfrastructureError("Session cache unavailable") from exc

    async def renew(self, user_id: int, snapshot: str, ttl_seconds: int) -> bool:
        try:
            written = await self.client.set(
                self._key(user_id), snapshot, ex=max(1, int(ttl_seconds)), xx=True
            )
        except RedisError as exc:
            logger.error("Session renewal failed for user %s: %s", user_id, exc)
            raise InfrastructureError("Session cache unavailable") from exc
        return bool(written)

    async def delete(self, user_id: int) -> None:
        try:
            await self.client.delete(self._key(user_id))
        except RedisError as exc:
            logger.error("Session delete failed for user %s: %s", user_id, exc)
            raise InfrastructureError("Session cache unavailable") from exc

    async def close(self) -> None:
        await self.client.aclose()
