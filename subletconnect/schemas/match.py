from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import Field

from subletconnect.models.enums import CandidateType, MatchKind
from subletconnect.schemas.account import AccountResponse, AccountSummary
from subletconnect.schemas.common import ApiModel
from subletconnect.schemas.listing import ListingResponse


class CandidateFilters(ApiModel):
    location: Optional[str] = None
    limit: int
    offset: int = 0
    listing_type: Optional[str] = None
    gender: Optional[str] = None


class CandidatesResponse(ApiModel):
    candidates: list[Union[ListingResponse, AccountResponse]]
    type: CandidateType
    count: int
    filters: CandidateFilters


class MatchListItem(ApiModel):
    match_id: UUID
    kind: MatchKind
    listing_id: Optional[UUID] = None
    matched_at: datetime
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None
    matched_user: Optional[AccountSummary] = None


class MatchListResponse(ApiModel):
    matches: list[MatchListItem]
    count: int


class MatchDetail(ApiModel):
    match_id: UUID
    kind: MatchKind
    participant_ids: list[UUID]
    listing_id: Optional[UUID] = None
    matched_at: datetime
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None
    users: list[AccountSummary] = []
    listing: Optional[ListingResponse] = None


class MessageCreate(ApiModel):
    match_id: UUID
    sender_id: UUID
    content: str = Field(min_length=1, max_length=4000)


class MessageResponse(ApiModel):
    id: UUID
    match_id: UUID
    sender_id: UUID
    content: str
    created_at: datetime


class MessagesResponse(ApiModel):
    messages: list[MessageResponse]
    count: int
