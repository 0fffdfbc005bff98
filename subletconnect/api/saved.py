"""
SubletConnect: Saved listings API

Bookmarks, independent of swipes: saving a listing neither records a
swipe nor hides it from the feed.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.database import get_db
from subletconnect.models.listing import SavedListing
from subletconnect.schemas.common import StatusMessage
from subletconnect.schemas.listing import (
    ListingResponse,
    SavedListingCreate,
    SavedListingItem,
    SavedListingResponse,
    SavedListingsResponse,
)
from subletconnect.services.account_service import AccountService
from subletconnect.services.listing_service import ListingService

logger = structlog.get_logger("subletconnect.api.saved")

router = APIRouter()


@router.post(
    "",
    response_model=SavedListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a listing",
)
async def save_listing(
    payload: SavedListingCreate,
    db: AsyncSession = Depends(get_db),
) -> SavedListing:
    await AccountService(db).get_or_raise(payload.user_id)
    return await ListingService(db).save(payload.user_id, payload.listing_id)


@router.get(
    "",
    response_model=SavedListingsResponse,
    summary="A user's saved listings, newest first",
)
async def get_saved_listings(
    user_id: uuid.UUID = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> SavedListingsResponse:
    rows = await ListingService(db).saved_for(user_id)
    items = [
        SavedListingItem(
            **ListingResponse.model_validate(listing).model_dump(),
            saved_at=saved.saved_at,
        )
        for listing, saved in rows
    ]
    return SavedListingsResponse(saved_listings=items, count=len(items))


@router.delete(
    "/{listing_id}",
    response_model=StatusMessage,
    summary="Remove a saved listing",
)
async def delete_saved_listing(
    listing_id: uuid.UUID,
    user_id: uuid.UUID = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> StatusMessage:
    await ListingService(db).unsave(user_id, listing_id)
    return StatusMessage(message=f"Listing {listing_id} removed from saved")
