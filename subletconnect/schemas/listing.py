from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from subletconnect.models.enums import ListingType
from subletconnect.schemas.common import ApiModel


class ListingCreate(ApiModel):
    owner_id: UUID
    title: str = Field(min_length=1)
    price: int = Field(ge=0)
    available_date: str = Field(min_length=1)
    location: str = Field(min_length=1)
    type: ListingType
    distance_to: str = ""
    description: str = ""
    amenities: list[str] = []
    lifestyle_tags: list[str] = []
    images: list[str] = []


class ListingUpdate(ApiModel):
    """Partial update: fields left out keep their stored value."""
    title: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    available_date: Optional[str] = None
    location: Optional[str] = None
    type: Optional[ListingType] = None
    distance_to: Optional[str] = None
    description: Optional[str] = None
    amenities: Optional[list[str]] = None
    lifestyle_tags: Optional[list[str]] = None
    images: Optional[list[str]] = None


class ListingResponse(ApiModel):
    id: UUID
    owner_id: UUID
    title: str
    price: int
    type: ListingType
    available_date: str
    location: str
    distance_to: str
    description: str
    amenities: list[str] = []
    lifestyle_tags: list[str] = []
    images: list[str] = []
    is_verified: bool
    created_at: datetime
    updated_at: datetime


class ListingsResponse(ApiModel):
    listings: list[ListingResponse]
    count: int


class SavedListingCreate(ApiModel):
    user_id: UUID
    listing_id: UUID


class SavedListingResponse(ApiModel):
    id: UUID
    listing_id: UUID
    saved_at: datetime


class SavedListingItem(ListingResponse):
    saved_at: datetime


class SavedListingsResponse(ApiModel):
    saved_listings: list[SavedListingItem]
    count: int


class LocationsResponse(ApiModel):
    locations: list[str]
    count: int


class ImageUploadResponse(ApiModel):
    url: str
    images: list[str] = []
