"""
Abstract base class for debounce store implementations.

A debounce store remembers, per conversation, who last requested an order
and when. Its one essential operation is an atomic check-and-set so that two
simultaneous requesters can never both see "no recent order".
"""

from abc import ABC, abstractmethod
from typing import Optional

from standup_bot.models.ordering import RecentOrdering


class DebounceStore(ABC):
    """Abstract base class for debounce store implementations."""

    @abstractmethod
    async def check_and_claim(
        self,
        conversation_key: str,
        requester: str,
        now_ms: int,
        window_ms: int,
    ) -> Optional[str]:
        """
        Atomically check for a recent ordering and claim the window if free.

        If there is no entry for ``conversation_key``, or the entry is at
        least ``window_ms`` old, record ``{requester, now_ms}`` and return
        None. Otherwise leave the entry untouched and return its requester.

        Args:
            conversation_key: Conversation the request came from
            requester: Name of the member asking for an order
            now_ms: Current time in milliseconds
            window_ms: Debounce window in milliseconds

        Returns:
            The prior requester if the request is suppressed, else None
        """
        pass

    @abstractmethod
    async def get_entry(self, conversation_key: str) -> Optional[RecentOrdering]:
        """Return the stored entry for a conversation, if any."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store backend is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend connections."""
        pass
