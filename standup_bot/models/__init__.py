"""
Pydantic models for the Standup Order Bot.

Provides data models for:
- Participants, conversations and order requests
- Ordered names and outbound replies
- Inbound Bot Framework activities
"""

from standup_bot.models.ordering import (
    ConversationRef,
    MeetingContext,
    Mention,
    OrderedName,
    OrderRequest,
    Participant,
    RecentOrdering,
    ReplyKind,
    ReplyPayload,
    Requester,
    normalize_contact_address,
)
from standup_bot.models.activity import (
    Activity,
    ChannelAccount,
    ConversationAccount,
)

__all__ = [
    # Ordering models
    "ConversationRef",
    "MeetingContext",
    "Mention",
    "OrderedName",
    "OrderRequest",
    "Participant",
    "RecentOrdering",
    "ReplyKind",
    "ReplyPayload",
    "Requester",
    "normalize_contact_address",
    # Activity models
    "Activity",
    "ChannelAccount",
    "ConversationAccount",
]
