"""
SubletConnect: Candidate Feed Builder

Produces the next page of swipe candidates for an account:

  looking   → listings not owned by the requester
  offering  → accounts in ``looking`` mode, requester excluded

Everything the requester already swiped on is excluded inside the query,
before ``LIMIT`` applies, so exclusions never shorten a page.  Pagination is
plain offset/limit; there is no stable cursor between pages.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.config import FEED_LIMIT_CEILING, get_settings
from subletconnect.errors import UserNotFound, ValidationFailed
from subletconnect.models.account import Account
from subletconnect.models.enums import AccountMode, CandidateType, ListingType
from subletconnect.models.listing import Listing
from subletconnect.services.account_service import AccountService
from subletconnect.services.swipe_ledger import SwipeLedger

logger = structlog.get_logger("subletconnect.feed_service")


class CandidateFeedBuilder:
    def __init__(
        self,
        db_session: AsyncSession,
        ledger: SwipeLedger | None = None,
        accounts: AccountService | None = None,
    ) -> None:
        self.db = db_session
        self.ledger = ledger or SwipeLedger(db_session)
        self.accounts = accounts or AccountService(db_session)

        settings = get_settings()
        self.default_limit: int = settings.FEED_DEFAULT_LIMIT
        self.max_limit: int = min(settings.FEED_MAX_LIMIT, FEED_LIMIT_CEILING)

    def clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return min(self.default_limit, self.max_limit)
        if limit < 1:
            raise ValidationFailed("limit must be at least 1.")
        return min(limit, self.max_limit)

    async def get_candidates(
        self,
        user_id: uuid.UUID,
        location: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        listing_type: Optional[ListingType] = None,
        gender: Optional[str] = None,
    ) -> dict:
        """Return ``{"candidates", "type", "count", "filters"}`` for
        ``user_id``.

        ``listing_type`` only narrows listing feeds and ``gender`` only
        narrows account feeds; each is ignored for the other feed.
        """
        log = logger.bind(user_id=str(user_id))

        account = await self.accounts.get(user_id)
        if account is None:
            raise UserNotFound(f"User {user_id} not found.")

        limit = self.clamp_limit(limit)
        offset = max(offset, 0)
        location = location.strip() if location and location.strip() else None
        if listing_type is not None:
            listing_type = ListingType(listing_type)

        swiped = list(await self.ledger.list_swiped(user_id))

        if account.mode == AccountMode.LOOKING.value:
            feed_type = CandidateType.LISTINGS
            stmt = select(Listing).where(Listing.owner_id != user_id)
            if swiped:
                stmt = stmt.where(Listing.id.notin_(swiped))
            if location:
                stmt = stmt.where(func.lower(Listing.location) == location.lower())
            if listing_type is not None:
                stmt = stmt.where(Listing.type == listing_type.value)
            stmt = stmt.order_by(Listing.created_at.desc(), Listing.id)
        else:
            feed_type = CandidateType.USERS
            stmt = select(Account).where(
                Account.mode == AccountMode.LOOKING.value,
                Account.id != user_id,
            )
            if swiped:
                stmt = stmt.where(Account.id.notin_(swiped))
            if location:
                stmt = stmt.where(func.lower(Account.search_location) == location.lower())
            if gender:
                stmt = stmt.where(func.lower(Account.gender) == gender.strip().lower())
            stmt = stmt.order_by(Account.created_at.desc(), Account.id)

        result = await self.db.execute(stmt.limit(limit).offset(offset))
        candidates = list(result.scalars().all())

        log.info(
            "candidates_built",
            feed_type=feed_type.value,
            count=len(candidates),
            excluded=len(swiped),
            limit=limit,
            offset=offset,
        )
        return {
            "candidates": candidates,
            "type": feed_type,
            "count": len(candidates),
            "filters": {
                "location": location,
                "limit": limit,
                "offset": offset,
                "listing_type": listing_type.value if listing_type else None,
                "gender": gender,
            },
        }
