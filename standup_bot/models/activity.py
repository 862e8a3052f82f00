"""
Pydantic models for inbound Bot Framework activities.

Only the fields the bot reads are modelled; everything else in the payload
is ignored. Field names follow the wire format (camelCase) through aliases.
"""

import re
from typing import Any, Optional

from pydantic import BaseModel, Field

from standup_bot.models.ordering import ConversationRef, OrderRequest, Requester


class ChannelAccount(BaseModel):
    """A user or bot account on the channel."""

    id: str
    name: Optional[str] = None
    aad_object_id: Optional[str] = Field(None, alias="aadObjectId")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class ConversationAccount(BaseModel):
    """The conversation an activity belongs to."""

    id: str
    tenant_id: Optional[str] = Field(None, alias="tenantId")
    conversation_type: Optional[str] = Field(None, alias="conversationType")
    is_group: Optional[bool] = Field(None, alias="isGroup")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class Activity(BaseModel):
    """
    An inbound activity posted to the messaging endpoint.

    Message activities carry the request text; the bot is usually addressed
    with an ``<at>Bot</at>`` mention that has to be removed before the text
    is interpreted.
    """

    type: str
    id: Optional[str] = None
    text: Optional[str] = None
    service_url: str = Field(..., alias="serviceUrl")
    from_: ChannelAccount = Field(..., alias="from")
    recipient: Optional[ChannelAccount] = None
    conversation: ConversationAccount
    channel_data: dict[str, Any] = Field(default_factory=dict, alias="channelData")
    entities: list[dict[str, Any]] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "json_schema_extra": {
            "examples": [
                {
                    "type": "message",
                    "id": "1712345678901",
                    "text": "<at>Standup</at> override:roomphone",
                    "serviceUrl": "https://smba.trafficmanager.net/amer/",
                    "from": {"id": "29:1a2b3c", "name": "Sam Rivera"},
                    "recipient": {"id": "28:bot-id", "name": "Standup"},
                    "conversation": {"id": "19:meeting_abc@thread.v2", "tenantId": "tenant-1"},
                    "channelData": {"meeting": {"id": "MCMxOTptZWV0aW5n"}},
                    "entities": [
                        {
                            "type": "mention",
                            "mentioned": {"id": "28:bot-id", "name": "Standup"},
                            "text": "<at>Standup</at>",
                        }
                    ],
                }
            ]
        },
    }

    @property
    def is_message(self) -> bool:
        return self.type == "message"

    @property
    def tenant_id(self) -> Optional[str]:
        """Tenant from the conversation, falling back to channel data."""
        if self.conversation.tenant_id:
            return self.conversation.tenant_id
        tenant = self.channel_data.get("tenant")
        if isinstance(tenant, dict):
            return tenant.get("id")
        return None

    @property
    def meeting_id(self) -> Optional[str]:
        meeting = self.channel_data.get("meeting")
        if isinstance(meeting, dict):
            return meeting.get("id")
        return None

    def text_without_recipient_mention(self) -> str:
        """
        Return the message text with every mention of the recipient removed.

        Mentions of other members are kept; they may be part of the request.
        """
        text = self.text or ""
        if self.recipient is None:
            return text.strip()
        for entity in self.entities:
            if entity.get("type") != "mention":
                continue
            mentioned = entity.get("mentioned") or {}
            mention_text = entity.get("text")
            if mentioned.get("id") == self.recipient.id and mention_text:
                text = re.sub(re.escape(mention_text), "", text)
        return text.strip()

    def to_conversation_ref(self) -> ConversationRef:
        return ConversationRef(
            conversation_id=self.conversation.id,
            service_url=self.service_url,
            tenant_id=self.tenant_id,
            meeting_id=self.meeting_id,
            activity_id=self.id,
        )

    def to_order_request(self, text: Optional[str] = None) -> OrderRequest:
        """
        Build the core request from this activity.

        Args:
            text: Already sanitized text; defaults to the text without the
                bot mention.
        """
        return OrderRequest(
            conversation=self.to_conversation_ref(),
            requester=Requester(id=self.from_.id, name=self.from_.name or ""),
            text=self.text_without_recipient_mention() if text is None else text,
        )
