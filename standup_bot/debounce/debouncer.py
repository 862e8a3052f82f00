"""
Request debouncer.

Suppresses a second order request for the same conversation while the first
is still recent. The first request claims the window before any output is
produced, so a request that later fails (for example on the roster fetch)
still consumes it.
"""

from typing import Optional

from standup_bot.config.settings import DEFAULT_DEBOUNCE_WINDOW_MS
from standup_bot.utils.logging import get_logger

from .base import DebounceStore
from .memory_store import MemoryDebounceStore

logger = get_logger(__name__)


class RequestDebouncer:
    """
    Gate for order requests, keyed by conversation.

    Args:
        store: Backend holding the recent orderings (memory store if None)
        window_ms: Debounce window in milliseconds
    """

    def __init__(
        self,
        store: Optional[DebounceStore] = None,
        window_ms: int = DEFAULT_DEBOUNCE_WINDOW_MS,
    ):
        if window_ms < 1:
            raise ValueError(f"window_ms must be at least 1, got {window_ms}")
        self._store = store if store is not None else MemoryDebounceStore()
        self._window_ms = window_ms

    @property
    def store(self) -> DebounceStore:
        return self._store

    @property
    def window_ms(self) -> int:
        return self._window_ms

    async def check_and_claim(
        self,
        conversation_key: str,
        requester: str,
        now_ms: int,
    ) -> Optional[str]:
        """
        Claim the debounce window for ``requester`` unless it is taken.

        Returns:
            The requester who holds the window (request suppressed), or None
            when the window was free and is now claimed.
        """
        prior = await self._store.check_and_claim(
            conversation_key,
            requester,
            now_ms,
            self._window_ms,
        )
        if prior is not None:
            logger.info(
                "order_request_debounced",
                conversation_key=conversation_key,
                requester=requester,
                prior_requester=prior,
            )
        return prior
