"""
Manual presence overrides.

Members whose presence cannot be detected (a conference-room phone, someone
dialled in) are marked present by writing ``override:<alias>`` in the
request, e.g. ``override:roomphone override:mary``. Each alias maps to
``alias@<domain>``.
"""

from standup_bot.config.settings import DEFAULT_OVERRIDE_PREFIX
from standup_bot.models.ordering import normalize_contact_address


def parse_overrides(
    text: str,
    domain: str,
    prefix: str = DEFAULT_OVERRIDE_PREFIX,
) -> frozenset[str]:
    """
    Extract override contact addresses from request text.

    Tokens are whitespace separated. A token qualifies when it starts with
    ``prefix``; an empty alias (``override:`` alone) is ignored. Aliases are
    lowercased and completed with ``domain``; an alias that already holds an
    ``@`` is used as the full address.

    Args:
        text: Request text
        domain: Mail domain appended to bare aliases
        prefix: Token prefix marking an override

    Returns:
        Set of normalized contact addresses
    """
    domain = domain.strip().lstrip("@").lower()
    addresses = set()
    for token in text.split():
        if not token.startswith(prefix):
            continue
        alias = token[len(prefix):]
        if not alias:
            continue
        address = alias if "@" in alias else f"{alias}@{domain}"
        addresses.add(normalize_contact_address(address))
    return frozenset(addresses)
