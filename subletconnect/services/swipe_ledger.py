"""
SubletConnect: Swipe Ledger

Append-only log of like / pass / superlike decisions.  It is the single
source of truth for "has X already decided about Y" and is read by both the
match reconciler (reverse-interest lookups) and the candidate feed (exclusion
of already-decided candidates).

Records are never updated.  The only deletion path is ``reset_all``, an
explicit administrative purge of every swipe made by one account.

Uniqueness of ``(swiper_id, swiped_id)`` is enforced by the ``uq_swipe_pair``
constraint and the insert is conditional (``ON CONFLICT DO NOTHING``), so two
concurrent identical swipes cannot both succeed.
"""

from __future__ import annotations

import uuid
from typing import Iterable

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.database import dialect_insert, utcnow
from subletconnect.errors import DuplicateSwipe, SelfSwipe
from subletconnect.models.enums import POSITIVE_DIRECTIONS, SwipeDirection, SwipedType
from subletconnect.models.match import Swipe

logger = structlog.get_logger("subletconnect.swipe_ledger")


class SwipeLedger:
    """Read/write access to the ``swipes`` table for one unit of work."""

    def __init__(self, db_session: AsyncSession) -> None:
        self.db = db_session

    # ── Writes ────────────────────────────────────────────────────────────

    async def record(
        self,
        swiper_id: uuid.UUID,
        swiped_id: uuid.UUID,
        swiped_type: SwipedType,
        direction: SwipeDirection,
    ) -> Swipe:
        """Append one swipe and return it.

        Raises
        ------
        SelfSwipe
            ``swiped_type`` is user and the swiper targets itself.
        DuplicateSwipe
            A swipe already exists for ``(swiper_id, swiped_id)``.  The
            stored record is left untouched.
        """
        swiped_type = SwipedType(swiped_type)
        direction = SwipeDirection(direction)

        if swiped_type is SwipedType.USER and swiper_id == swiped_id:
            raise SelfSwipe()

        swipe_id = uuid.uuid4()
        created_at = utcnow()

        stmt = (
            dialect_insert(self.db, Swipe)
            .values(
                id=swipe_id,
                swiper_id=swiper_id,
                swiped_id=swiped_id,
                swiped_type=swiped_type.value,
                direction=direction.value,
                created_at=created_at,
            )
            .on_conflict_do_nothing(index_elements=["swiper_id", "swiped_id"])
            .returning(Swipe.id)
        )
        inserted = (await self.db.execute(stmt)).scalar_one_or_none()

        if inserted is None:
            logger.info(
                "swipe_duplicate",
                swiper_id=str(swiper_id),
                swiped_id=str(swiped_id),
            )
            raise DuplicateSwipe()

        logger.info(
            "swipe_recorded",
            swipe_id=str(swipe_id),
            swiper_id=str(swiper_id),
            swiped_id=str(swiped_id),
            swiped_type=swiped_type.value,
            direction=direction.value,
        )
        return Swipe(
            id=swipe_id,
            swiper_id=swiper_id,
            swiped_id=swiped_id,
            swiped_type=swiped_type.value,
            direction=direction.value,
            created_at=created_at,
        )

    async def reset_all(self, swiper_id: uuid.UUID) -> int:
        """Delete every swipe made by ``swiper_id``; return how many."""
        result = await self.db.execute(
            delete(Swipe).where(Swipe.swiper_id == swiper_id)
        )
        deleted = result.rowcount or 0
        logger.info("swipes_reset", swiper_id=str(swiper_id), deleted_count=deleted)
        return deleted

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get(self, swipe_id: uuid.UUID) -> Swipe | None:
        result = await self.db.execute(select(Swipe).where(Swipe.id == swipe_id))
        return result.scalar_one_or_none()

    async def find_reverse(
        self,
        swiper_id: uuid.UUID,
        swiped_id: uuid.UUID,
        swiped_type: SwipedType = SwipedType.USER,
    ) -> Swipe | None:
        """Return the like/superlike ``swiped_id`` already recorded toward
        ``swiper_id``, if any.

        The reverse record always targets an account (``swiper_id`` is one),
        so ``swiped_type`` only matters for callers that need to distinguish
        the forward swipe's kind; the lookup itself is on the account side.
        """
        stmt = select(Swipe).where(
            Swipe.swiper_id == swiped_id,
            Swipe.swiped_id == swiper_id,
            Swipe.swiped_type == SwipedType.USER.value,
            Swipe.direction.in_(POSITIVE_DIRECTIONS),
        )
        reverse = (await self.db.execute(stmt)).scalar_one_or_none()

        logger.debug(
            "reverse_lookup",
            swiper_id=str(swiper_id),
            swiped_id=str(swiped_id),
            forward_type=SwipedType(swiped_type).value,
            found=reverse is not None,
        )
        return reverse

    async def find_like_on_any(
        self,
        swiper_id: uuid.UUID,
        listing_ids: Iterable[uuid.UUID],
    ) -> Swipe | None:
        """Return the earliest like/superlike ``swiper_id`` made on any of
        ``listing_ids``."""
        listing_ids = list(listing_ids)
        if not listing_ids:
            return None

        stmt = (
            select(Swipe)
            .where(
                Swipe.swiper_id == swiper_id,
                Swipe.swiped_type == SwipedType.LISTING.value,
                Swipe.swiped_id.in_(listing_ids),
                Swipe.direction.in_(POSITIVE_DIRECTIONS),
            )
            .order_by(Swipe.created_at.asc())
            .limit(1)
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def list_swiped(self, swiper_id: uuid.UUID) -> set[uuid.UUID]:
        """Ids of every account or listing ``swiper_id`` has decided on."""
        result = await self.db.execute(
            select(Swipe.swiped_id).where(Swipe.swiper_id == swiper_id)
        )
        return set(result.scalars().all())
