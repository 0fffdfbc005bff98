"""
SubletConnect: match event publication.

Every new match is announced as a ``match.created`` JSON message on one
channel per participant (``<MATCH_EVENTS_CHANNEL_PREFIX>:<account id>``),
which the messaging/notification side subscribes to.  Publication is
best-effort: failures are logged and never reach the swipe caller.
"""

from __future__ import annotations

import json
from typing import Callable, Optional

import structlog

from subletconnect.config import get_settings
from subletconnect.models.match import Match
from subletconnect.utils.redis_client import get_redis

logger = structlog.get_logger("subletconnect.events")


def match_created_payload(match: Match) -> dict:
    return {
        "event": "match.created",
        "matchId": str(match.id),
        "kind": match.kind,
        "participantIds": [str(pid) for pid in match.participant_ids],
        "listingId": str(match.listing_id) if match.listing_id else None,
        "createdAt": match.created_at.isoformat() if match.created_at else None,
    }


class MatchEventPublisher:
    def __init__(
        self,
        redis_getter: Callable = get_redis,
        channel_prefix: Optional[str] = None,
    ) -> None:
        self._redis_getter = redis_getter
        self.channel_prefix = channel_prefix or get_settings().MATCH_EVENTS_CHANNEL_PREFIX

    def channel_for(self, account_id) -> str:
        return f"{self.channel_prefix}:{account_id}"

    async def publish_match_created(self, match: Match) -> int:
        """Publish to each participant's channel; return channels reached."""
        redis = self._redis_getter()
        if redis is None:
            logger.debug("match_event_skipped", match_id=str(match.id), reason="no_redis")
            return 0

        message = json.dumps(match_created_payload(match))
        published = 0
        for participant_id in match.participant_ids:
            channel = self.channel_for(participant_id)
            try:
                await redis.publish(channel, message)
                published += 1
            except Exception as exc:
                logger.warning(
                    "match_event_publish_failed",
                    match_id=str(match.id),
                    channel=channel,
                    error=str(exc),
                )
        logger.info("match_event_published", match_id=str(match.id), channels=published)
        return published
