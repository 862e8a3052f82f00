"""Display names for ordered participants."""

from collections import Counter
from typing import Sequence

from standup_bot.models.ordering import Participant


def format_names(participants: Sequence[Participant]) -> list[str]:
    """
    Produce one display name per participant, in input order.

    Members are called by their given name. When several members share a
    given name, each of them is shown as "<given name> <surname>". Members
    without a given name are shown with their full name.
    """
    given_name_counts = Counter(p.given_name for p in participants if p.given_name)

    names = []
    for participant in participants:
        if not participant.given_name:
            display = participant.name
        elif given_name_counts[participant.given_name] > 1:
            display = f"{participant.given_name} {participant.surname or ''}"
        else:
            display = participant.given_name
        names.append(display.strip())
    return names
