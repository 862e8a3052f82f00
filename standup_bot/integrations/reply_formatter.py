"""
Reply formatting for the Standup Order Bot.

Turns core results into the text and mention entities of an outbound
message. Present members are emphasized with Markdown bold; the requester is
addressed with an ``<at>`` mention whose display name is escaped. Names are
escaped for the markup they are placed in.

Usage:
    from standup_bot.integrations.reply_formatter import ReplyFormatter

    formatter = ReplyFormatter(override_domain="contoso.com")
    payload = formatter.format_order(requester, ordered_names)
"""

from typing import Sequence

from standup_bot.config.settings import DEFAULT_DEBOUNCE_WINDOW_MS, DEFAULT_OVERRIDE_PREFIX
from standup_bot.models.ordering import (
    Mention,
    OrderedName,
    ReplyKind,
    ReplyPayload,
    Requester,
)
from standup_bot.utils.validation import escape_markdown, escape_markup


ACKNOWLEDGEMENT_TEXT = "Sure, it will take just a minute."


class ReplyFormatter:
    """
    Formats the bot's replies.

    Args:
        override_domain: Domain that override aliases resolve to (shown in help)
        override_prefix: Token prefix for overrides (shown in help)
        window_ms: Debounce window (shown in help)
    """

    def __init__(
        self,
        override_domain: str = "example.com",
        override_prefix: str = DEFAULT_OVERRIDE_PREFIX,
        window_ms: int = DEFAULT_DEBOUNCE_WINDOW_MS,
    ):
        self._override_domain = override_domain
        self._override_prefix = override_prefix
        self._window_ms = window_ms

    @staticmethod
    def mention_for(requester: Requester) -> Mention:
        """Mention entity addressing the requester."""
        return Mention(
            mentioned_id=requester.id,
            mentioned_name=requester.label,
            text=f"<at>{escape_markup(requester.label)}</at>",
        )

    @staticmethod
    def render_name(name: OrderedName) -> str:
        text = escape_markdown(name.display_name)
        return f"**{text}**" if name.present else text

    def format_order(
        self,
        requester: Requester,
        ordered_names: Sequence[OrderedName],
    ) -> ReplyPayload:
        """Reply listing the order, one name per paragraph."""
        mention = self.mention_for(requester)
        if ordered_names:
            names = "\n\n".join(self.render_name(name) for name in ordered_names)
            text = f"{mention.text}, here is the random order you requested:\n\n{names}"
        else:
            text = f"{mention.text}, I couldn't find anyone in this conversation to put in order."
        return ReplyPayload(
            kind=ReplyKind.ORDER,
            text=text,
            mentions=[mention],
            ordered_names=list(ordered_names),
        )

    def format_debounced(self, requester: Requester, prior_requester: str) -> ReplyPayload:
        """Reply telling the requester someone else just asked."""
        mention = self.mention_for(requester)
        return ReplyPayload(
            kind=ReplyKind.DEBOUNCED,
            text=f"Sorry {mention.text}, {escape_markup(prior_requester)} beat you to it.",
            mentions=[mention],
        )

    def format_acknowledgement(self) -> ReplyPayload:
        return ReplyPayload(kind=ReplyKind.ACKNOWLEDGEMENT, text=ACKNOWLEDGEMENT_TEXT)

    def format_help(self) -> ReplyPayload:
        """Static usage instructions, including the override syntax."""
        prefix = self._override_prefix
        window_seconds = max(1, self._window_ms // 1000)
        text = "\n\n".join([
            "I choose a random speaking order for your standup. "
            "Mention me in the chat to get one.",
            "In a meeting, people who are in the call are listed first, in bold. "
            "Everyone else follows.",
            f"If someone is in the room but I can't see them (a conference-room "
            f"phone, for example), add {prefix}<alias> to your message, e.g. "
            f"{prefix}roomphone. The alias is their address without "
            f"@{self._override_domain}; add several to mark several people present.",
            f"I hand out one order per conversation every {window_seconds} seconds.",
        ])
        return ReplyPayload(kind=ReplyKind.HELP, text=text)
