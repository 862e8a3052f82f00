"""
In-memory debounce store.

Entries live for the lifetime of the process and are never evicted; growth
is bounded by the number of distinct conversations the bot is used in.
Suppression only holds within a single process.
"""

import asyncio
from typing import Optional

from standup_bot.models.ordering import RecentOrdering

from .base import DebounceStore


class MemoryDebounceStore(DebounceStore):
    """Dictionary-backed debounce store guarded by a single lock."""

    def __init__(self):
        self._entries: dict[str, RecentOrdering] = {}
        self._lock = asyncio.Lock()

    async def check_and_claim(
        self,
        conversation_key: str,
        requester: str,
        now_ms: int,
        window_ms: int,
    ) -> Optional[str]:
        """Check for a recent ordering and claim the window if it is free."""
        async with self._lock:
            existing = self._entries.get(conversation_key)
            if existing is not None and now_ms - existing.timestamp_ms < window_ms:
                return existing.requester

            self._entries[conversation_key] = RecentOrdering(
                requester=requester,
                timestamp_ms=now_ms,
            )
            return None

    async def get_entry(self, conversation_key: str) -> Optional[RecentOrdering]:
        async with self._lock:
            return self._entries.get(conversation_key)

    async def get_entry_count(self) -> int:
        """Number of conversations with a recorded ordering."""
        async with self._lock:
            return len(self._entries)

    async def health_check(self) -> bool:
        """Always healthy."""
        return True

    async def close(self) -> None:
        pass
