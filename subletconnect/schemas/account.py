from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from subletconnect.models.enums import AccountMode
from subletconnect.schemas.common import ApiModel


class AccountCreate(ApiModel):
    username: str = Field(min_length=1)
    email: str = Field(min_length=3)
    full_name: str = Field(min_length=1)
    age: int = Field(ge=18, le=100)
    search_location: str = Field(min_length=1)
    mode: AccountMode
    identity_ref: Optional[str] = None
    gender: Optional[str] = None
    profile_picture: str = ""
    bio: str = ""
    lifestyle_tags: list[str] = []


class AccountUpdate(ApiModel):
    username: Optional[str] = None
    full_name: Optional[str] = None
    age: Optional[int] = Field(None, ge=18, le=100)
    gender: Optional[str] = None
    search_location: Optional[str] = None
    mode: Optional[AccountMode] = None
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    lifestyle_tags: Optional[list[str]] = None


class AccountResponse(ApiModel):
    id: UUID
    identity_ref: Optional[str] = None
    username: str
    email: str
    full_name: str
    age: int
    gender: Optional[str] = None
    mode: AccountMode
    search_location: str
    profile_picture: str
    bio: str
    lifestyle_tags: list[str] = []
    is_verified: bool
    created_at: datetime
    updated_at: datetime


class AccountSummary(ApiModel):
    """Reduced account card used inside match payloads."""
    id: UUID
    username: str
    full_name: str
    profile_picture: str
    search_location: str
