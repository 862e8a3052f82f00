"""
Standup order orchestrator.

Composes the ordering core for one inbound request:

  1. Parse manual presence overrides from the request text
  2. Debounce gate: one order per conversation per window
  3. Acknowledge (optional), then fetch the roster
  4. Draw a random order
  5. In a meeting, list present members first (emphasized), then the rest;
     display names are built per group
  6. Compose the reply addressed to the requester

The orchestrator owns no transport; everything platform specific goes
through the injected MessagingPlatform.
"""

import random
import time
from typing import Optional

from standup_bot.config.settings import DEFAULT_OVERRIDE_PREFIX
from standup_bot.debounce.debouncer import RequestDebouncer
from standup_bot.integrations.platform import MessagingPlatform, SendReplyError
from standup_bot.integrations.reply_formatter import ReplyFormatter
from standup_bot.models.ordering import OrderedName, OrderRequest, ReplyPayload
from standup_bot.ordering.engine import partition_by_presence, random_order
from standup_bot.ordering.names import format_names
from standup_bot.ordering.overrides import parse_overrides
from standup_bot.ordering.presence import PresenceClassifier
from standup_bot.utils.logging import bind_contextvars, get_logger, unbind_contextvars

logger = get_logger(__name__)


def current_time_ms() -> int:
    return int(time.time() * 1000)


class StandupOrderOrchestrator:
    """
    Entry point for order and help requests.

    Args:
        platform: Roster, presence and reply transport
        debouncer: Per-conversation request gate
        formatter: Reply text composer
        override_domain: Domain appended to override aliases
        override_prefix: Token prefix marking an override
        send_acknowledgement: Post a short acknowledgement before the roster fetch
        help_command: Exact text that returns the help reply
        rng: Random source for the order (module generator if None)
    """

    def __init__(
        self,
        platform: MessagingPlatform,
        debouncer: RequestDebouncer,
        formatter: ReplyFormatter,
        override_domain: str,
        override_prefix: str = DEFAULT_OVERRIDE_PREFIX,
        send_acknowledgement: bool = True,
        help_command: str = "help",
        rng: Optional[random.Random] = None,
    ):
        self._platform = platform
        self._debouncer = debouncer
        self._formatter = formatter
        self._override_domain = override_domain
        self._override_prefix = override_prefix
        self._send_acknowledgement = send_acknowledgement
        self._help_command = help_command
        self._rng = rng
        self._presence = PresenceClassifier(platform)

    @property
    def platform(self) -> MessagingPlatform:
        return self._platform

    @property
    def debouncer(self) -> RequestDebouncer:
        return self._debouncer

    def is_help_request(self, text: str) -> bool:
        return text.strip() == self._help_command

    async def handle_message(
        self,
        request: OrderRequest,
        now_ms: Optional[int] = None,
    ) -> ReplyPayload:
        """
        Route a message, send the resulting reply and return it.

        Raises:
            PlatformError: If the roster fetch or the reply fails
        """
        conversation = request.conversation
        bind_contextvars(conversation_key=conversation.conversation_key)
        try:
            if self.is_help_request(request.text):
                logger.info("help_requested", requester_id=request.requester.id)
                payload = self._formatter.format_help()
            else:
                payload = await self.handle_order_request(request, now_ms=now_ms)

            await self._platform.send_reply(conversation, payload)
            return payload
        finally:
            unbind_contextvars("conversation_key")

    async def handle_order_request(
        self,
        request: OrderRequest,
        now_ms: Optional[int] = None,
    ) -> ReplyPayload:
        """
        Produce the order reply, or the debounced reply when another member
        asked within the window.

        The window is claimed before the roster is fetched, so a request that
        fails afterwards still counts as the conversation's order.

        Raises:
            RosterFetchError: If the roster cannot be fetched
        """
        if now_ms is None:
            now_ms = current_time_ms()

        conversation = request.conversation
        requester = request.requester
        overrides = parse_overrides(request.text, self._override_domain, self._override_prefix)

        prior = await self._debouncer.check_and_claim(
            conversation.conversation_key,
            requester.label,
            now_ms,
        )
        if prior is not None:
            return self._formatter.format_debounced(requester, prior)

        logger.info(
            "order_requested",
            requester_id=requester.id,
            in_meeting=conversation.meeting_context is not None,
            overrides=len(overrides),
        )

        if self._send_acknowledgement:
            await self._acknowledge(request)

        roster = await self._platform.fetch_roster(conversation)
        ordered = random_order(roster, rng=self._rng)

        meeting = conversation.meeting_context
        if meeting is None:
            ordered_names = [OrderedName(display_name=name) for name in format_names(ordered)]
        else:
            presence = await self._presence.classify(ordered, meeting, overrides)
            present, absent = partition_by_presence(ordered, presence)
            # Given-name collisions are resolved within each group.
            ordered_names = [
                OrderedName(display_name=name, present=True) for name in format_names(present)
            ] + [OrderedName(display_name=name) for name in format_names(absent)]

        logger.info(
            "order_generated",
            participants=len(ordered_names),
            present=sum(1 for name in ordered_names if name.present),
        )
        return self._formatter.format_order(requester, ordered_names)

    async def _acknowledge(self, request: OrderRequest) -> None:
        # The order itself still goes out when the acknowledgement cannot.
        try:
            await self._platform.send_reply(
                request.conversation,
                self._formatter.format_acknowledgement(),
            )
        except SendReplyError as e:
            logger.warning(
                "acknowledgement_failed",
                error=str(e),
                status_code=e.status_code,
            )
