"""
Random ordering and presence partitioning.

The order is drawn by giving every participant an independent uniform key in
[0, 1) and sorting indices by key. Python's sort is stable, so the
(astronomically unlikely) tie keeps the input order.
"""

import random
from typing import Optional, Sequence, TypeVar

from standup_bot.models.ordering import Participant

T = TypeVar("T")


def random_order(
    participants: Sequence[T],
    rng: Optional[random.Random] = None,
) -> list[T]:
    """
    Return the participants in a uniformly random order.

    The input is not modified; the result is a new list holding the same
    elements.

    Args:
        participants: Members to order
        rng: Random source (module-level generator if None)

    Returns:
        A permutation of ``participants``
    """
    draw = (rng or random).random
    keys = [draw() for _ in participants]
    indices = sorted(range(len(participants)), key=keys.__getitem__)
    return [participants[i] for i in indices]


def partition_by_presence(
    ordered: Sequence[Participant],
    presence: dict[str, bool],
) -> tuple[list[Participant], list[Participant]]:
    """
    Split an ordered roster into present and absent members.

    Each group keeps the relative order it had in ``ordered``. Members with
    no entry in ``presence`` count as absent.

    Returns:
        (present, absent)
    """
    present: list[Participant] = []
    absent: list[Participant] = []
    for participant in ordered:
        if presence.get(participant.id, False):
            present.append(participant)
        else:
            absent.append(participant)
    return present, absent
