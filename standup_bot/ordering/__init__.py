"""
Ordering core for the Standup Order Bot.

This package contains the random ordering engine, name formatting,
override parsing, presence classification and the orchestrator that
composes them for one request.
"""

from standup_bot.ordering.engine import partition_by_presence, random_order
from standup_bot.ordering.names import format_names
from standup_bot.ordering.overrides import parse_overrides
from standup_bot.ordering.presence import PresenceClassifier
from standup_bot.ordering.orchestrator import StandupOrderOrchestrator

__all__ = [
    "PresenceClassifier",
    "StandupOrderOrchestrator",
    "format_names",
    "parse_overrides",
    "partition_by_presence",
    "random_order",
]
