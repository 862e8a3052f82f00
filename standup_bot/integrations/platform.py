"""
Messaging platform interface.

The ordering core never talks to a chat platform directly. It goes through
this interface, which the Bot Connector client implements and tests replace
with fakes.
"""

from abc import ABC, abstractmethod
from typing import Optional

from standup_bot.models.ordering import (
    ConversationRef,
    MeetingContext,
    Participant,
    ReplyPayload,
)


# ========================
# Errors
# ========================


class PlatformError(Exception):
    """Base class for failures talking to the messaging platform."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RosterFetchError(PlatformError):
    """The conversation roster could not be fetched."""


class PresenceLookupError(PlatformError):
    """The meeting presence of one participant could not be looked up."""


class SendReplyError(PlatformError):
    """A reply could not be delivered."""


# ========================
# Interface
# ========================


class MessagingPlatform(ABC):
    """Operations the bot needs from the messaging platform."""

    @abstractmethod
    async def fetch_roster(self, conversation: ConversationRef) -> list[Participant]:
        """
        Return the current members of a conversation.

        Raises:
            RosterFetchError: If the roster is unavailable
        """
        pass

    @abstractmethod
    async def fetch_meeting_presence(
        self,
        meeting: MeetingContext,
        participant_id: str,
    ) -> bool:
        """
        Return whether a participant is currently in the meeting.

        Raises:
            PresenceLookupError: If the lookup fails
        """
        pass

    @abstractmethod
    async def send_reply(self, conversation: ConversationRef, payload: ReplyPayload) -> None:
        """
        Deliver a reply to the conversation.

        Raises:
            SendReplyError: If delivery fails
        """
        pass

    async def close(self) -> None:
        """Release any underlying connections."""
        return None
