"""Debounce stores and the request debouncer."""

from .base import DebounceStore
from .memory_store import MemoryDebounceStore
from .redis_store import RedisDebounceStore
from .factory import create_debounce_store
from .debouncer import RequestDebouncer

__all__ = [
    "DebounceStore",
    "MemoryDebounceStore",
    "RedisDebounceStore",
    "create_debounce_store",
    "RequestDebouncer",
]
