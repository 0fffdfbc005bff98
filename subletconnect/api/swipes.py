"""
SubletConnect: Swipes API

Recording a swipe runs the match check in the same request; the response
says whether the swipe completed a match.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.database import get_db
from subletconnect.schemas.swipe import ResetSwipesResponse, SwipeCreate, SwipeResult
from subletconnect.services.match_reconciler import MatchReconciler
from subletconnect.services.swipe_ledger import SwipeLedger

logger = structlog.get_logger("subletconnect.api.swipes")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /: Record a swipe and check for a match
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=SwipeResult,
    status_code=status.HTTP_201_CREATED,
    summary="Record a swipe",
)
async def create_swipe(
    payload: SwipeCreate,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Append the swipe to the ledger, then check whether it completes a
    match (user↔user, seeker→listing, or owner→seeker)."""
    reconciler = MatchReconciler(db)
    return await reconciler.record_swipe(
        swiper_id=payload.swiper_id,
        swiped_id=payload.swiped_id,
        swiped_type=payload.swiped_type,
        direction=payload.direction,
    )


# ──────────────────────────────────────────────────────────────────────────────
# POST /{swipe_id}/reconcile: Re-run the match check
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{swipe_id}/reconcile",
    response_model=SwipeResult,
    summary="Retry the match check for a recorded swipe",
)
async def reconcile_swipe(
    swipe_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await MatchReconciler(db).reconcile(swipe_id)


# ──────────────────────────────────────────────────────────────────────────────
# DELETE /reset: Purge a user's swipes
# ──────────────────────────────────────────────────────────────────────────────

@router.delete(
    "/reset",
    response_model=ResetSwipesResponse,
    summary="Delete every swipe made by a user",
)
async def reset_swipes(
    user_id: uuid.UUID = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> ResetSwipesResponse:
    deleted = await SwipeLedger(db).reset_all(user_id)
    return ResetSwipesResponse(
        message=f"Deleted {deleted} swipes for user {user_id}",
        deleted_count=deleted,
    )
