"""
SubletConnect: Messages API

Chat between the two participants of a match.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.database import get_db
from subletconnect.models.match import Message
from subletconnect.schemas.match import MessageCreate, MessageResponse, MessagesResponse
from subletconnect.services.match_service import MatchService

logger = structlog.get_logger("subletconnect.api.messages")

router = APIRouter()


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message in a match",
)
async def create_message(
    payload: MessageCreate,
    db: AsyncSession = Depends(get_db),
) -> Message:
    """Only participants may post; the match preview is updated."""
    return await MatchService(db).send_message(
        payload.match_id, payload.sender_id, payload.content
    )


@router.get(
    "/{match_id}",
    response_model=MessagesResponse,
    summary="Messages of a match, oldest first",
)
async def get_messages(
    match_id: uuid.UUID,
    user_id: uuid.UUID = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> MessagesResponse:
    messages = await MatchService(db).messages(match_id, user_id)
    return MessagesResponse(
        messages=[MessageResponse.model_validate(m) for m in messages],
        count=len(messages),
    )
