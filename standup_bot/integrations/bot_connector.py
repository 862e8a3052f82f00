"""
Bot Connector client for the Standup Order Bot.

Implements the MessagingPlatform interface over the Bot Connector REST API
with httpx: paged roster lookup, per-member meeting presence, and replies
with mention entities. Transient failures (transport errors, 429 and 5xx
responses) are retried with exponential backoff.

Usage:
    from standup_bot.integrations.bot_connector import BotConnectorClient

    client = BotConnectorClient(access_token="...")
    members = await client.fetch_roster(conversation)
    await client.send_reply(conversation, payload)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from standup_bot.integrations.platform import (
    MessagingPlatform,
    PlatformError,
    PresenceLookupError,
    RosterFetchError,
    SendReplyError,
)
from standup_bot.models.ordering import (
    ConversationRef,
    MeetingContext,
    Participant,
    ReplyPayload,
)
from standup_bot.utils.logging import get_logger

logger = get_logger(__name__)


DEFAULT_PAGE_SIZE = 500


@dataclass
class ClientStats:
    """Tracks client usage statistics."""

    api_calls: int = 0
    replies_sent: int = 0
    presence_lookups: int = 0
    errors: int = 0
    retries: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class _TransientStatusError(Exception):
    """A response status worth retrying (429 or 5xx)."""

    def __init__(self, response: httpx.Response):
        self.response = response
        super().__init__(f"HTTP {response.status_code} from {response.request.url}")


def _status_of(error: Exception) -> Optional[int]:
    if isinstance(error, _TransientStatusError):
        return error.response.status_code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


class BotConnectorClient(MessagingPlatform):
    """
    MessagingPlatform backed by the Bot Connector REST API.

    Args:
        access_token: Bearer token for outbound calls (no header if None)
        timeout_seconds: Per-request timeout
        max_retries: Attempts per call for transient failures
        retry_wait_seconds: Base delay of the exponential backoff
        page_size: Members requested per roster page
        http_client: Pre-built client (tests pass one with a mock transport)
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        retry_wait_seconds: float = 0.5,
        page_size: int = DEFAULT_PAGE_SIZE,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._access_token = access_token
        self._max_retries = max_retries
        self._retry_wait_seconds = retry_wait_seconds
        self._page_size = page_size
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._stats = ClientStats()

        logger.info(
            "bot_connector_client_initialized",
            max_retries=max_retries,
            timeout_seconds=timeout_seconds,
            authenticated=bool(access_token),
        )

    # ========================
    # Roster
    # ========================

    async def fetch_roster(self, conversation: ConversationRef) -> list[Participant]:
        """
        Fetch every member of the conversation, following continuation tokens.

        Raises:
            RosterFetchError: If any page cannot be fetched
        """
        url = (
            f"{self._base_url(conversation)}/v3/conversations/"
            f"{quote(conversation.conversation_id, safe='')}/pagedmembers"
        )
        members: list[Participant] = []
        continuation_token: Optional[str] = None

        while True:
            params: dict[str, Any] = {"pageSize": self._page_size}
            if continuation_token:
                params["continuationToken"] = continuation_token
            try:
                data = await self._get_json(url, "fetch_roster", params=params)
            except (httpx.HTTPError, _TransientStatusError, ValueError) as e:
                self._stats.errors += 1
                raise RosterFetchError(
                    f"Could not fetch roster for {conversation.conversation_id}: {e}",
                    status_code=_status_of(e),
                ) from e

            members.extend(
                Participant.from_roster_member(member)
                for member in data.get("members", [])
            )
            continuation_token = data.get("continuationToken")
            if not continuation_token:
                break

        logger.debug(
            "roster_fetched",
            conversation_key=conversation.conversation_key,
            members=len(members),
        )
        return members

    # ========================
    # Meeting presence
    # ========================

    async def fetch_meeting_presence(
        self,
        meeting: MeetingContext,
        participant_id: str,
    ) -> bool:
        """
        Look up whether a member is currently in the meeting.

        The response carries ``meeting.inMeeting``; a missing flag means the
        member is not in the meeting.

        Raises:
            PresenceLookupError: If the lookup fails
        """
        self._stats.presence_lookups += 1
        url = (
            f"{self._base_url(meeting)}/v1/meetings/{quote(meeting.meeting_id, safe='')}"
            f"/participants/{quote(participant_id, safe='')}"
        )
        try:
            data = await self._get_json(
                url,
                "fetch_meeting_presence",
                params={"tenantId": meeting.tenant_id},
            )
        except (httpx.HTTPError, _TransientStatusError, ValueError) as e:
            self._stats.errors += 1
            raise PresenceLookupError(
                f"Could not look up presence of {participant_id}: {e}",
                status_code=_status_of(e),
            ) from e

        meeting_info = data.get("meeting") or {}
        return bool(meeting_info.get("inMeeting", False))

    # ========================
    # Replies
    # ========================

    async def send_reply(self, conversation: ConversationRef, payload: ReplyPayload) -> None:
        """
        Post a message activity to the conversation.

        When the inbound activity id is known the message is sent as a reply
        to it, which keeps channel threads intact.

        Raises:
            SendReplyError: If delivery fails
        """
        url = (
            f"{self._base_url(conversation)}/v3/conversations/"
            f"{quote(conversation.conversation_id, safe='')}/activities"
        )
        body: dict[str, Any] = {
            "type": "message",
            "text": payload.text,
            "textFormat": "markdown",
            "entities": [mention.to_entity() for mention in payload.mentions],
        }
        if conversation.activity_id:
            url = f"{url}/{quote(conversation.activity_id, safe='')}"
            body["replyToId"] = conversation.activity_id

        try:
            response = await self._request("POST", url, "send_reply", json=body)
            response.raise_for_status()
        except (httpx.HTTPError, _TransientStatusError) as e:
            self._stats.errors += 1
            raise SendReplyError(
                f"Could not send reply to {conversation.conversation_id}: {e}",
                status_code=_status_of(e),
            ) from e

        self._stats.replies_sent += 1
        logger.info(
            "reply_sent",
            conversation_key=conversation.conversation_key,
            reply_kind=payload.kind.value,
            length=len(payload.text),
        )

    # ========================
    # HTTP helpers
    # ========================

    @staticmethod
    def _base_url(ref: ConversationRef | MeetingContext) -> str:
        return ref.service_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def _retry_logger(self, operation: str):
        def log_retry(retry_state: RetryCallState) -> None:
            self._stats.retries += 1
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "platform_call_retry",
                operation=operation,
                attempt=retry_state.attempt_number,
                error=str(error) if error else None,
            )

        return log_retry

    async def _request(
        self,
        method: str,
        url: str,
        operation: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, retrying transport errors, 429 and 5xx responses."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=self._retry_wait_seconds, max=10),
            retry=retry_if_exception_type((httpx.TransportError, _TransientStatusError)),
            before_sleep=self._retry_logger(operation),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                self._stats.api_calls += 1
                response = await self._client.request(
                    method,
                    url,
                    headers=self._headers(),
                    **kwargs,
                )
                if response.status_code == 429 or response.status_code >= 500:
                    logger.debug(
                        "platform_call_transient_status",
                        operation=operation,
                        status_code=response.status_code,
                    )
                    raise _TransientStatusError(response)
        return response

    async def _get_json(self, url: str, operation: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._request("GET", url, operation, **kwargs)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected response body for {operation}")
        return data

    # ========================
    # Client Management
    # ========================

    @property
    def stats(self) -> ClientStats:
        """Get client usage statistics."""
        return self._stats

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
        logger.info(
            "bot_connector_client_closed",
            api_calls=self._stats.api_calls,
            replies_sent=self._stats.replies_sent,
            presence_lookups=self._stats.presence_lookups,
            errors=self._stats.errors,
            retries=self._stats.retries,
        )

    def __repr__(self) -> str:
        return (
            f"BotConnectorClient(api_calls={self._stats.api_calls}, "
            f"replies_sent={self._stats.replies_sent})"
        )


def create_bot_connector_client(settings: Any) -> BotConnectorClient:
    """Build a client from application settings."""
    return BotConnectorClient(
        access_token=settings.bot_access_token if settings.has_bot_access_token else None,
        timeout_seconds=settings.platform_timeout_seconds,
        max_retries=settings.platform_max_retries,
    )


__all__ = [
    "BotConnectorClient",
    "ClientStats",
    "PlatformError",
    "create_bot_connector_client",
]
