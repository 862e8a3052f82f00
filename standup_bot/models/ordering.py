"""
Pydantic models for order requests, participants and replies.

These are the explicit, platform-independent inputs and outputs of the
ordering core. Everything here is a per-request snapshot; nothing is
persisted.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


def normalize_contact_address(address: Optional[str]) -> Optional[str]:
    """Trim and lowercase a contact address; blank addresses become None."""
    if address is None:
        return None
    normalized = address.strip().lower()
    return normalized or None


class Participant(BaseModel):
    """
    A conversation member as returned by the roster lookup.

    ``name`` is the full display name and is used whenever ``given_name`` is
    missing. ``email`` is compared case-insensitively against overrides.
    """

    id: str = Field(..., min_length=1, description="Opaque member id, unique per conversation")
    name: str = Field("", description="Full display name")
    given_name: Optional[str] = Field(None, description="Given (first) name")
    surname: Optional[str] = Field(None, description="Surname (last name)")
    email: Optional[str] = Field(None, description="Contact address, e.g. the member's email")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "29:1a2b3c",
                    "name": "Alex Archer",
                    "given_name": "Alex",
                    "surname": "Archer",
                    "email": "alex.archer@example.com",
                }
            ]
        },
    }

    @property
    def contact_address(self) -> Optional[str]:
        """Normalized contact address used for override matching."""
        return normalize_contact_address(self.email)

    @classmethod
    def from_roster_member(cls, member: dict[str, Any]) -> "Participant":
        """
        Build a participant from a Bot Connector roster entry.

        Roster entries use camelCase keys (``givenName``, ``surname``,
        ``email``, ``userPrincipalName``). Members without an email fall back
        to their user principal name, which has the same shape.
        """
        return cls(
            id=member["id"],
            name=member.get("name") or "",
            given_name=member.get("givenName"),
            surname=member.get("surname"),
            email=member.get("email") or member.get("userPrincipalName"),
        )


class MeetingContext(BaseModel):
    """Identifies a live meeting in which presence can be looked up."""

    tenant_id: str = Field(..., min_length=1)
    meeting_id: str = Field(..., min_length=1)
    service_url: str = Field(..., min_length=1, description="Connector service that hosts the meeting APIs")

    model_config = {"frozen": True}


class ConversationRef(BaseModel):
    """
    Addressing metadata for the conversation a request came from.

    Replaces the platform's turn context: enough to fetch the roster, look up
    meeting presence and send a reply, and nothing more.
    """

    conversation_id: str = Field(..., min_length=1, description="Conversation (chat/channel/thread) id")
    service_url: str = Field(..., min_length=1, description="Base URL of the platform's connector service")
    tenant_id: Optional[str] = Field(None, description="Tenant the conversation belongs to")
    meeting_id: Optional[str] = Field(None, description="Meeting id when the chat belongs to a meeting")
    activity_id: Optional[str] = Field(None, description="Id of the inbound message, used as reply target")

    model_config = {"frozen": True}

    @property
    def conversation_key(self) -> str:
        """Key under which recent orderings are tracked."""
        return self.conversation_id

    @property
    def meeting_context(self) -> Optional[MeetingContext]:
        """The meeting context, only when both tenant and meeting are known."""
        if self.tenant_id and self.meeting_id:
            return MeetingContext(
                tenant_id=self.tenant_id,
                meeting_id=self.meeting_id,
                service_url=self.service_url,
            )
        return None


class Requester(BaseModel):
    """The member who asked for an order."""

    id: str = Field(..., min_length=1)
    name: str = Field("", description="Display name, echoed back in replies")

    model_config = {"frozen": True}

    @property
    def label(self) -> str:
        """Display name, or the account id when the channel sent no name."""
        return self.name or self.id


class OrderRequest(BaseModel):
    """One inbound request: who asked, where, and what they wrote."""

    conversation: ConversationRef
    requester: Requester
    text: str = Field("", description="Message text with the bot mention removed")

    model_config = {"frozen": True}


class RecentOrdering(BaseModel):
    """The last successful order claim for a conversation."""

    requester: str
    timestamp_ms: int = Field(..., ge=0)


class OrderedName(BaseModel):
    """A display name in the final order, flagged when the member is present."""

    display_name: str
    present: bool = False


class Mention(BaseModel):
    """Mention entity for a member referenced in the reply text."""

    mentioned_id: str
    mentioned_name: str
    text: str = Field(..., description="Markup that appears in the message text, e.g. <at>Sam</at>")

    def to_entity(self) -> dict[str, Any]:
        """Render as a Bot Framework ``mention`` entity."""
        return {
            "type": "mention",
            "mentioned": {"id": self.mentioned_id, "name": self.mentioned_name},
            "text": self.text,
        }


class ReplyKind(str, Enum):
    """What a reply is answering."""

    ORDER = "order"
    DEBOUNCED = "debounced"
    HELP = "help"
    ACKNOWLEDGEMENT = "acknowledgement"


class ReplyPayload(BaseModel):
    """An outbound message: text, mentions and, for orders, the ordered names."""

    kind: ReplyKind
    text: str
    mentions: list[Mention] = Field(default_factory=list)
    ordered_names: list[OrderedName] = Field(default_factory=list)
