"""
Debounce store factory.

Selects the configured backend, falling back to the in-memory store when
Redis cannot be reached.
"""

from typing import Optional

from .base import DebounceStore
from .memory_store import MemoryDebounceStore
from .redis_store import RedisDebounceStore

from standup_bot.utils.logging import get_logger

logger = get_logger(__name__)


async def create_debounce_store(
    backend: str = "memory",
    redis_url: Optional[str] = None,
    fallback_to_memory: bool = True,
) -> DebounceStore:
    """
    Create a debounce store for the requested backend.

    Args:
        backend: "memory" or "redis"
        redis_url: Redis connection URL (required for the redis backend)
        fallback_to_memory: Whether to use the memory store if Redis fails

    Returns:
        Debounce store instance

    Raises:
        ValueError: If the backend name is unknown
        ConnectionError: If Redis fails and fallback_to_memory is False
    """
    if backend == "memory":
        logger.info("debounce_store_ready", store_type="memory")
        return MemoryDebounceStore()

    if backend != "redis":
        raise ValueError(f"Unknown debounce backend '{backend}'")

    redis_url = redis_url or "redis://localhost:6379/0"
    redis_store = RedisDebounceStore(redis_url=redis_url)

    if await redis_store.health_check():
        logger.info("debounce_store_ready", store_type="redis", redis_url=redis_url)
        return redis_store

    await redis_store.close()
    if fallback_to_memory:
        logger.warning("debounce_store_fallback", reason="redis_unavailable", store_type="memory")
        return MemoryDebounceStore()
    raise ConnectionError(f"Failed to connect to Redis at {redis_url}")
