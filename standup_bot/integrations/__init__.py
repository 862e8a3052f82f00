"""
External integrations for the Standup Order Bot.

This package provides the messaging platform interface, its Bot Connector
implementation and the reply formatter.
"""

from standup_bot.integrations.platform import (
    MessagingPlatform,
    PlatformError,
    PresenceLookupError,
    RosterFetchError,
    SendReplyError,
)
from standup_bot.integrations.bot_connector import (
    BotConnectorClient,
    ClientStats,
    create_bot_connector_client,
)
from standup_bot.integrations.reply_formatter import ACKNOWLEDGEMENT_TEXT, ReplyFormatter

__all__ = [
    "ACKNOWLEDGEMENT_TEXT",
    "BotConnectorClient",
    "ClientStats",
    "MessagingPlatform",
    "PlatformError",
    "PresenceLookupError",
    "ReplyFormatter",
    "RosterFetchError",
    "SendReplyError",
    "create_bot_connector_client",
]
