"""
Presence classification for participants of a live meeting.

A participant is present when the platform reports them in the meeting, or
when their contact address was given as an override. Lookups run
concurrently; a failed lookup only affects its own participant, who is then
treated as absent.
"""

import asyncio
from typing import Optional, Sequence

from standup_bot.integrations.platform import MessagingPlatform
from standup_bot.models.ordering import MeetingContext, Participant
from standup_bot.utils.logging import get_logger

logger = get_logger(__name__)


class PresenceClassifier:
    """
    Decides, per participant, whether they count as present.

    Args:
        platform: Provides the live in-meeting lookup
    """

    def __init__(self, platform: MessagingPlatform):
        self._platform = platform

    async def classify(
        self,
        participants: Sequence[Participant],
        meeting: Optional[MeetingContext],
        overrides: frozenset[str] = frozenset(),
    ) -> dict[str, bool]:
        """
        Build the presence map for ``participants``.

        Without a meeting context no lookup is possible and everyone is
        absent. Otherwise every participant gets exactly one entry.

        Args:
            participants: Members to classify
            meeting: Meeting in which to look up presence
            overrides: Normalized contact addresses marked present manually

        Returns:
            Mapping from participant id to presence
        """
        if meeting is None:
            return {p.id: False for p in participants}

        results = await asyncio.gather(
            *(self._platform.fetch_meeting_presence(meeting, p.id) for p in participants),
            return_exceptions=True,
        )

        presence: dict[str, bool] = {}
        failures = 0
        for participant, result in zip(participants, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failures += 1
                logger.warning(
                    "presence_lookup_failed",
                    participant_id=participant.id,
                    meeting_id=meeting.meeting_id,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                detected = False
            else:
                detected = bool(result)

            overridden = participant.contact_address in overrides
            presence[participant.id] = detected or overridden

        logger.debug(
            "presence_classified",
            meeting_id=meeting.meeting_id,
            participants=len(participants),
            present=sum(presence.values()),
            overrides=len(overrides),
            failures=failures,
        )
        return presence
