"""
SubletConnect: Candidate feed API
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.database import get_db
from subletconnect.models.enums import CandidateType, ListingType
from subletconnect.schemas.account import AccountResponse
from subletconnect.schemas.listing import ListingResponse
from subletconnect.schemas.match import CandidateFilters, CandidatesResponse
from subletconnect.services.feed_service import CandidateFeedBuilder

logger = structlog.get_logger("subletconnect.api.candidates")

router = APIRouter()


@router.get(
    "",
    response_model=CandidatesResponse,
    summary="Next page of swipe candidates",
)
async def get_candidates(
    user_id: uuid.UUID = Query(..., alias="userId"),
    location: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, description="Clamped to FEED_MAX_LIMIT"),
    offset: int = Query(0, ge=0),
    listing_type: Optional[ListingType] = Query(None, alias="listingType"),
    gender: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> CandidatesResponse:
    """Listings for accounts that are looking, seekers for accounts that
    are offering.  Already-swiped candidates never appear."""
    feed = await CandidateFeedBuilder(db).get_candidates(
        user_id,
        location=location,
        limit=limit,
        offset=offset,
        listing_type=listing_type,
        gender=gender,
    )

    item_model = ListingResponse if feed["type"] is CandidateType.LISTINGS else AccountResponse
    return CandidatesResponse(
        candidates=[item_model.model_validate(c) for c in feed["candidates"]],
        type=feed["type"],
        count=feed["count"],
        filters=CandidateFilters(**feed["filters"]),
    )
