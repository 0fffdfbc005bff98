"""
SubletConnect: Match Reconciler

Runs after every swipe and decides whether a match now exists.  Three shapes
of mutual interest are recognised:

  user → user       the swiped account already liked the swiper back
                    → ``user_user`` match.
  user → user       no direct reverse, but the swiped account liked one of
                    the swiper's listings → ``user_listing`` match on that
                    listing (owner swiping on a seeker).
  user → listing    the listing's owner already liked the swiper
                    → ``user_listing`` match on the swiped listing.

``pass`` never matches.  The swipe is committed before the check runs so a
failed check never loses the decision; ``reconcile(swipe_id)`` re-runs the
check for an already-recorded swipe.

Matches are written with an insert-if-absent keyed on
``<lo>:<hi>:<listing id or empty>`` (sorted participant pair), so two
concurrent opposite swipes can never produce two rows for the same pair.
When the row already exists the existing match id is returned.

The listing is part of that key, so one pair of accounts can hold a
``user_listing`` match per listing plus one ``user_user`` match.  Each is
its own conversation: a seeker who matched on a host's listing and then
likes the host directly gets a second, listing-less match.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.database import dialect_insert, utcnow
from subletconnect.errors import SwipeNotFound, UserNotFound
from subletconnect.models.enums import MatchKind, SwipeDirection, SwipedType
from subletconnect.models.match import Match, Swipe
from subletconnect.services.account_service import AccountService
from subletconnect.services.listing_service import ListingService
from subletconnect.services.swipe_ledger import SwipeLedger
from subletconnect.utils.events import MatchEventPublisher

logger = structlog.get_logger("subletconnect.match_reconciler")


def sorted_pair(a: uuid.UUID, b: uuid.UUID) -> tuple[uuid.UUID, uuid.UUID]:
    lo, hi = sorted((a, b), key=str)
    return lo, hi


def dedupe_key(a: uuid.UUID, b: uuid.UUID, listing_id: Optional[uuid.UUID] = None) -> str:
    lo, hi = sorted_pair(a, b)
    return f"{lo}:{hi}:{listing_id or ''}"


class MatchReconciler:
    """Record-then-reconcile orchestration for one unit of work.

    Collaborators are injected so tests can substitute a publisher; the
    defaults share the caller's session.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        ledger: SwipeLedger | None = None,
        accounts: AccountService | None = None,
        listings: ListingService | None = None,
        publisher: MatchEventPublisher | None = None,
    ) -> None:
        self.db = db_session
        self.ledger = ledger or SwipeLedger(db_session)
        self.accounts = accounts or AccountService(db_session)
        self.listings = listings or ListingService(db_session)
        self.publisher = publisher or MatchEventPublisher()

    # ── Public API ────────────────────────────────────────────────────────

    async def record_swipe(
        self,
        swiper_id: uuid.UUID,
        swiped_id: uuid.UUID,
        swiped_type: SwipedType,
        direction: SwipeDirection,
    ) -> dict:
        """Record a swipe, commit it, then run the match check.

        Returns
        -------
        dict
            ``{"swipe_id", "matched", "match_id"}``.

        Raises
        ------
        UserNotFound
            The swiper has no account.  Nothing is recorded.
        SelfSwipe, DuplicateSwipe
            From the ledger.  Nothing is reconciled.
        """
        log = logger.bind(swiper_id=str(swiper_id), swiped_id=str(swiped_id))
        log.info("record_swipe_start", swiped_type=str(SwipedType(swiped_type).value))

        if await self.accounts.get(swiper_id) is None:
            raise UserNotFound(f"User {swiper_id} not found.")

        swipe = await self.ledger.record(swiper_id, swiped_id, swiped_type, direction)
        await self.db.commit()

        return await self._reconcile(swipe)

    async def reconcile(self, swipe_id: uuid.UUID) -> dict:
        """Re-run the match check for an existing swipe."""
        swipe = await self.ledger.get(swipe_id)
        if swipe is None:
            raise SwipeNotFound(f"Swipe {swipe_id} not found.")
        logger.info("reconcile_retry", swipe_id=str(swipe_id))
        return await self._reconcile(swipe)

    # ── Decision ──────────────────────────────────────────────────────────

    async def _reconcile(self, swipe: Swipe) -> dict:
        log = logger.bind(swipe_id=str(swipe.id), swiper_id=str(swipe.swiper_id))
        result = {"swipe_id": swipe.id, "matched": False, "match_id": None}

        if not SwipeDirection(swipe.direction).is_positive:
            log.info("reconcile_skipped", reason="pass")
            return result

        if SwipedType(swipe.swiped_type) is SwipedType.USER:
            found = await self._match_for_user_swipe(swipe)
        else:
            found = await self._match_for_listing_swipe(swipe)

        if found is None:
            log.info("reconcile_no_match")
            return result

        kind, other_id, listing_id = found
        match, created = await self._store_match(kind, swipe.swiper_id, other_id, listing_id)
        await self.db.commit()

        if created:
            log.info(
                "match_created",
                match_id=str(match.id),
                kind=kind.value,
                listing_id=str(listing_id) if listing_id else None,
            )
            try:
                await self.publisher.publish_match_created(match)
            except Exception as exc:
                log.warning("match_event_failed", match_id=str(match.id), error=str(exc))
        else:
            log.info("match_exists", match_id=str(match.id))

        result.update(matched=True, match_id=match.id)
        return result

    async def _match_for_user_swipe(
        self, swipe: Swipe
    ) -> tuple[MatchKind, uuid.UUID, Optional[uuid.UUID]] | None:
        reverse = await self.ledger.find_reverse(swipe.swiper_id, swipe.swiped_id, SwipedType.USER)
        if reverse is not None:
            return MatchKind.USER_USER, swipe.swiped_id, None

        # Owner swiping on a seeker: did the seeker like one of the owner's listings?
        owned = await self.listings.owned_listing_ids(swipe.swiper_id)
        if not owned:
            return None
        listing_like = await self.ledger.find_like_on_any(swipe.swiped_id, owned)
        if listing_like is None:
            return None
        return MatchKind.USER_LISTING, swipe.swiped_id, listing_like.swiped_id

    async def _match_for_listing_swipe(
        self, swipe: Swipe
    ) -> tuple[MatchKind, uuid.UUID, Optional[uuid.UUID]] | None:
        listing = await self.listings.get(swipe.swiped_id)
        if listing is None:
            logger.info("reconcile_listing_missing", listing_id=str(swipe.swiped_id))
            return None

        owner_id = listing.owner_id
        if owner_id == swipe.swiper_id:
            return None

        reverse = await self.ledger.find_reverse(swipe.swiper_id, owner_id, SwipedType.LISTING)
        if reverse is None:
            return None
        return MatchKind.USER_LISTING, owner_id, listing.id

    # ── Persistence ───────────────────────────────────────────────────────

    async def _store_match(
        self,
        kind: MatchKind,
        a: uuid.UUID,
        b: uuid.UUID,
        listing_id: Optional[uuid.UUID],
    ) -> tuple[Match, bool]:
        """Insert the match unless its dedupe key exists; return
        ``(match, created)``."""
        lo, hi = sorted_pair(a, b)
        key = dedupe_key(a, b, listing_id)

        stmt = (
            dialect_insert(self.db, Match)
            .values(
                id=uuid.uuid4(),
                kind=kind.value,
                participant_lo=lo,
                participant_hi=hi,
                listing_id=listing_id,
                dedupe_key=key,
                created_at=utcnow(),
            )
            .on_conflict_do_nothing(index_elements=["dedupe_key"])
            .returning(Match.id)
        )
        inserted = (await self.db.execute(stmt)).scalar_one_or_none()

        match = (
            await self.db.execute(select(Match).where(Match.dedupe_key == key))
        ).scalar_one()
        return match, inserted is not None
