"""
SubletConnect: Listing directory, saved listings and the location index.

Listings are owned by exactly one account (``owner_id`` is the account's
storage id).  Updates use merge semantics: fields absent from the request
keep their stored value.
"""

from __future__ import annotations

import re
import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.database import dialect_insert
from subletconnect.errors import (
    AlreadySaved,
    ListingNotFound,
    OwnerNotOffering,
    SavedListingNotFound,
    UserNotFound,
)
from subletconnect.models.account import Account
from subletconnect.models.enums import AccountMode, ListingType
from subletconnect.models.listing import Listing, SavedListing
from subletconnect.schemas.listing import ListingCreate, ListingUpdate


logger = structlog.get_logger("subletconnect.listing_service")

_LOCATION_SPLIT = re.compile(r"(\s|,)")


def normalize_location(location: str) -> str:
    """Title-case each word of a location, keeping separators as typed.

    ``"guelph, on"`` -> ``"Guelph, On"``
    """
    parts = _LOCATION_SPLIT.split(location.strip().lower())
    return "".join(part[:1].upper() + part[1:] for part in parts)


class ListingService:
    def __init__(self, db_session: AsyncSession) -> None:
        self.db = db_session

    # ── Directory reads ──────────────────────────────────────────────────

    async def get(self, listing_id: uuid.UUID) -> Listing | None:
        result = await self.db.execute(select(Listing).where(Listing.id == listing_id))
        return result.scalar_one_or_none()

    async def get_or_raise(self, listing_id: uuid.UUID) -> Listing:
        listing = await self.get(listing_id)
        if listing is None:
            raise ListingNotFound(f"Listing {listing_id} not found.")
        return listing

    async def owned_listing_ids(self, owner_id: uuid.UUID) -> list[uuid.UUID]:
        result = await self.db.execute(
            select(Listing.id).where(Listing.owner_id == owner_id)
        )
        return list(result.scalars().all())

    async def query(
        self,
        owner_id: Optional[uuid.UUID] = None,
        location: Optional[str] = None,
        listing_type: Optional[ListingType] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Listing]:
        stmt = select(Listing)
        if owner_id is not None:
            stmt = stmt.where(Listing.owner_id == owner_id)
        if location:
            stmt = stmt.where(Listing.location.ilike(location.strip()))
        if listing_type is not None:
            stmt = stmt.where(Listing.type == ListingType(listing_type).value)
        stmt = stmt.order_by(Listing.created_at.desc()).limit(limit).offset(offset)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    # ── Directory writes ─────────────────────────────────────────────────

    async def create(self, payload: ListingCreate) -> Listing:
        log = logger.bind(owner_id=str(payload.owner_id))
        log.info("create_listing_start")

        owner = (
            await self.db.execute(select(Account).where(Account.id == payload.owner_id))
        ).scalar_one_or_none()
        if owner is None:
            raise UserNotFound(f"User {payload.owner_id} not found.")
        if owner.mode != AccountMode.OFFERING.value:
            log.warning("create_listing_owner_not_offering", mode=owner.mode)
            raise OwnerNotOffering()

        listing = Listing(
            owner_id=payload.owner_id,
            title=payload.title,
            price=payload.price,
            type=payload.type.value,
            available_date=payload.available_date,
            location=payload.location,
            distance_to=payload.distance_to,
            description=payload.description,
            amenities=list(payload.amenities),
            lifestyle_tags=list(payload.lifestyle_tags),
            images=list(payload.images),
        )
        self.db.add(listing)
        await self.db.flush()

        log.info("create_listing_complete", listing_id=str(listing.id))
        return listing

    async def update(self, listing_id: uuid.UUID, payload: ListingUpdate) -> Listing:
        listing = await self.get_or_raise(listing_id)

        update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "type" in update_data:
            update_data["type"] = ListingType(update_data["type"]).value
        for field, value in update_data.items():
            setattr(listing, field, value)

        await self.db.flush()
        logger.info(
            "update_listing_complete",
            listing_id=str(listing_id),
            updated_fields=list(update_data.keys()),
        )
        return listing

    async def delete(self, listing_id: uuid.UUID) -> None:
        listing = await self.get_or_raise(listing_id)
        await self.db.execute(delete(SavedListing).where(SavedListing.listing_id == listing_id))
        await self.db.delete(listing)
        await self.db.flush()
        logger.info("delete_listing_complete", listing_id=str(listing_id))

    async def append_image(self, listing_id: uuid.UUID, url: str) -> Listing:
        listing = await self.get_or_raise(listing_id)
        # Reassign so the JSON column is flagged dirty.
        listing.images = [*(listing.images or []), url]
        await self.db.flush()
        return listing

    # ── Locations ────────────────────────────────────────────────────────

    async def locations(self) -> list[str]:
        """Distinct normalised locations across listings and account search
        locations, sorted case-insensitively."""
        listing_locs = await self.db.execute(select(Listing.location).distinct())
        account_locs = await self.db.execute(select(Account.search_location).distinct())

        by_key: dict[str, str] = {}
        for loc in [*listing_locs.scalars().all(), *account_locs.scalars().all()]:
            if not loc or not loc.strip():
                continue
            key = loc.strip().lower()
            by_key.setdefault(key, normalize_location(loc))

        return sorted(by_key.values(), key=str.lower)

    # ── Saved listings ───────────────────────────────────────────────────

    async def save(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> SavedListing:
        await self.get_or_raise(listing_id)

        saved_id = uuid.uuid4()
        stmt = (
            dialect_insert(self.db, SavedListing)
            .values(id=saved_id, user_id=user_id, listing_id=listing_id)
            .on_conflict_do_nothing(index_elements=["user_id", "listing_id"])
            .returning(SavedListing.id)
        )
        if (await self.db.execute(stmt)).scalar_one_or_none() is None:
            raise AlreadySaved()

        saved = (
            await self.db.execute(select(SavedListing).where(SavedListing.id == saved_id))
        ).scalar_one()
        logger.info("listing_saved", user_id=str(user_id), listing_id=str(listing_id))
        return saved

    async def saved_for(self, user_id: uuid.UUID) -> list[tuple[Listing, SavedListing]]:
        stmt = (
            select(Listing, SavedListing)
            .join(SavedListing, SavedListing.listing_id == Listing.id)
            .where(SavedListing.user_id == user_id)
            .order_by(SavedListing.saved_at.desc())
        )
        result = await self.db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def unsave(self, user_id: uuid.UUID, listing_id: uuid.UUID) -> None:
        result = await self.db.execute(
            delete(SavedListing).where(
                SavedListing.user_id == user_id,
                SavedListing.listing_id == listing_id,
            )
        )
        if not result.rowcount:
            raise SavedListingNotFound()
        logger.info("listing_unsaved", user_id=str(user_id), listing_id=str(listing_id))
