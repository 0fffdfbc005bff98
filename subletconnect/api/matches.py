"""
SubletConnect: Matches API

Read side only: matches are created by the swipe flow.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.database import get_db
from subletconnect.schemas.match import MatchDetail, MatchListItem, MatchListResponse
from subletconnect.services.match_service import MatchService

logger = structlog.get_logger("subletconnect.api.matches")

router = APIRouter()


@router.get(
    "",
    response_model=MatchListResponse,
    summary="List a user's matches",
)
async def list_matches(
    user_id: uuid.UUID = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> MatchListResponse:
    """Most recent activity first; each item carries the other
    participant's card."""
    items = await MatchService(db).list_for_user(user_id)
    return MatchListResponse(
        matches=[MatchListItem.model_validate(item, from_attributes=True) for item in items],
        count=len(items),
    )


@router.get(
    "/{match_id}",
    response_model=MatchDetail,
    summary="Get one match",
)
async def get_match(
    match_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> MatchDetail:
    detail = await MatchService(db).detail(match_id)
    return MatchDetail.model_validate(detail, from_attributes=True)
