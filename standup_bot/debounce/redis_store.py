"""
Redis-based debounce store.

Lets several bot processes share one debounce window per conversation. Each
conversation is a hash ``{requester, timestamp_ms}``; the check-and-set runs
as a Lua script so it is atomic on the server.
"""

from typing import Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.commands.core import AsyncScript
from redis.exceptions import RedisError

from standup_bot.models.ordering import RecentOrdering

from .base import DebounceStore


# KEYS[1] = entry key; ARGV = requester, now_ms, window_ms.
# Returns the prior requester on a hit, nil after claiming.
_CHECK_AND_CLAIM_SCRIPT = """
local entry = redis.call('HMGET', KEYS[1], 'requester', 'timestamp_ms')
local now = tonumber(ARGV[2])
local window = tonumber(ARGV[3])
if entry[2] and now - tonumber(entry[2]) < window then
    return entry[1]
end
redis.call('HSET', KEYS[1], 'requester', ARGV[1], 'timestamp_ms', ARGV[2])
redis.call('PEXPIRE', KEYS[1], window)
return false
"""


class RedisDebounceStore(DebounceStore):
    """Redis implementation of the debounce store."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = "standup-order",
        max_connections: int = 10,
    ):
        """
        Initialize Redis debounce store.

        Args:
            redis_url: Redis connection URL
            key_prefix: Prefix for entry keys
            max_connections: Maximum Redis connection pool size
        """
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.max_connections = max_connections
        self._redis: Optional[Redis] = None
        self._script: Optional[AsyncScript] = None
        self._connected = False

    def entry_key(self, conversation_key: str) -> str:
        return f"{self.key_prefix}:recent:{conversation_key}"

    async def _ensure_connected(self) -> Redis:
        """Ensure Redis connection is established."""
        if self._redis is None or not self._connected:
            try:
                self._redis = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    max_connections=self.max_connections,
                )
                await self._redis.ping()
                self._script = self._redis.register_script(_CHECK_AND_CLAIM_SCRIPT)
                self._connected = True
            except RedisError as e:
                self._connected = False
                raise ConnectionError(f"Failed to connect to Redis: {e}") from e

        return self._redis

    async def check_and_claim(
        self,
        conversation_key: str,
        requester: str,
        now_ms: int,
        window_ms: int,
    ) -> Optional[str]:
        """
        Check for a recent ordering and claim the window if it is free.

        Entries expire after one window; an expired entry behaves exactly
        like a missing one.

        Raises:
            ConnectionError: If Redis cannot be reached
        """
        await self._ensure_connected()
        try:
            prior = await self._script(
                keys=[self.entry_key(conversation_key)],
                args=[requester, now_ms, window_ms],
            )
        except RedisError as e:
            self._connected = False
            raise ConnectionError(f"Debounce check failed: {e}") from e
        return prior

    async def get_entry(self, conversation_key: str) -> Optional[RecentOrdering]:
        redis_client = await self._ensure_connected()
        try:
            data = await redis_client.hgetall(self.entry_key(conversation_key))
        except RedisError as e:
            self._connected = False
            raise ConnectionError(f"Debounce lookup failed: {e}") from e
        if not data or "timestamp_ms" not in data:
            return None
        return RecentOrdering(
            requester=data.get("requester", ""),
            timestamp_ms=int(data["timestamp_ms"]),
        )

    async def health_check(self) -> bool:
        """Check if Redis is healthy."""
        try:
            redis_client = await self._ensure_connected()
            await redis_client.ping()
            return True
        except (ConnectionError, RedisError):
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._connected = False
