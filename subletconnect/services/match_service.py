"""
SubletConnect: Match read side and messaging.

Matches are created only by the reconciler; this service lists them for a
participant, expands one match for display, and appends chat messages.
Sending a message refreshes the match's ``last_message`` preview, which is
what the inbox sorts on.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.database import utcnow
from subletconnect.errors import MatchNotFound, NotMatchParticipant
from subletconnect.models.account import Account
from subletconnect.models.listing import Listing
from subletconnect.models.match import Match, Message

logger = structlog.get_logger("subletconnect.match_service")


class MatchService:
    def __init__(self, db_session: AsyncSession) -> None:
        self.db = db_session

    async def get_or_raise(self, match_id: uuid.UUID) -> Match:
        result = await self.db.execute(select(Match).where(Match.id == match_id))
        match = result.scalar_one_or_none()
        if match is None:
            raise MatchNotFound(f"Match {match_id} not found.")
        return match

    async def get_for_participant(self, match_id: uuid.UUID, user_id: uuid.UUID) -> Match:
        match = await self.get_or_raise(match_id)
        if user_id not in match.participant_ids:
            logger.warning("match_access_denied", match_id=str(match_id), user_id=str(user_id))
            raise NotMatchParticipant()
        return match

    async def list_for_user(self, user_id: uuid.UUID) -> list[dict]:
        """Matches involving ``user_id``, most recent activity first, each
        with the other participant's account attached."""
        stmt = (
            select(Match)
            .where(or_(Match.participant_lo == user_id, Match.participant_hi == user_id))
            .order_by(func.coalesce(Match.last_message_at, Match.created_at).desc())
        )
        matches = list((await self.db.execute(stmt)).scalars().all())

        other_ids = {m.other_participant(user_id) for m in matches}
        accounts: dict[uuid.UUID, Account] = {}
        if other_ids:
            rows = await self.db.execute(select(Account).where(Account.id.in_(other_ids)))
            accounts = {a.id: a for a in rows.scalars().all()}

        items = [
            {
                "match_id": m.id,
                "kind": m.kind,
                "listing_id": m.listing_id,
                "matched_at": m.created_at,
                "last_message": m.last_message,
                "last_message_at": m.last_message_at,
                "matched_user": accounts.get(m.other_participant(user_id)),
            }
            for m in matches
        ]
        logger.info("matches_listed", user_id=str(user_id), count=len(items))
        return items

    async def detail(self, match_id: uuid.UUID) -> dict:
        match = await self.get_or_raise(match_id)

        rows = await self.db.execute(
            select(Account).where(Account.id.in_(match.participant_ids))
        )
        listing = None
        if match.listing_id is not None:
            listing = (
                await self.db.execute(select(Listing).where(Listing.id == match.listing_id))
            ).scalar_one_or_none()

        return {
            "match_id": match.id,
            "kind": match.kind,
            "participant_ids": match.participant_ids,
            "listing_id": match.listing_id,
            "matched_at": match.created_at,
            "last_message": match.last_message,
            "last_message_at": match.last_message_at,
            "users": list(rows.scalars().all()),
            "listing": listing,
        }

    # ── Messaging ─────────────────────────────────────────────────────────

    async def send_message(
        self, match_id: uuid.UUID, sender_id: uuid.UUID, content: str
    ) -> Message:
        match = await self.get_for_participant(match_id, sender_id)

        message = Message(match_id=match.id, sender_id=sender_id, content=content, created_at=utcnow())
        self.db.add(message)

        match.last_message = content
        match.last_message_at = message.created_at
        await self.db.flush()

        logger.info("message_sent", match_id=str(match_id), sender_id=str(sender_id))
        return message

    async def messages(self, match_id: uuid.UUID, user_id: uuid.UUID) -> list[Message]:
        await self.get_for_participant(match_id, user_id)
        result = await self.db.execute(
            select(Message)
            .where(Message.match_id == match_id)
            .order_by(Message.created_at.asc())
        )
        return list(result.scalars().all())
