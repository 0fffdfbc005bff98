"""
SubletConnect: Listings API
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.config import get_settings
from subletconnect.database import get_db
from subletconnect.models.enums import ListingType
from subletconnect.models.listing import Listing
from subletconnect.schemas.common import StatusMessage
from subletconnect.schemas.listing import (
    ImageUploadResponse,
    ListingCreate,
    ListingResponse,
    ListingsResponse,
    ListingUpdate,
)
from subletconnect.services.listing_service import ListingService
from subletconnect.utils.storage import image_object_path, upload_file, validate_image

logger = structlog.get_logger("subletconnect.api.listings")

router = APIRouter()


@router.post(
    "",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a listing",
)
async def create_listing(
    payload: ListingCreate,
    db: AsyncSession = Depends(get_db),
) -> Listing:
    """The owner must exist and be in ``offering`` mode."""
    return await ListingService(db).create(payload)


@router.get(
    "",
    response_model=ListingsResponse,
    summary="Browse listings",
)
async def list_listings(
    owner_id: Optional[uuid.UUID] = Query(None, alias="ownerId"),
    location: Optional[str] = Query(None),
    listing_type: Optional[ListingType] = Query(None, alias="type"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ListingsResponse:
    listings = await ListingService(db).query(
        owner_id=owner_id,
        location=location,
        listing_type=listing_type,
        limit=limit,
        offset=offset,
    )
    return ListingsResponse(
        listings=[ListingResponse.model_validate(item) for item in listings],
        count=len(listings),
    )


@router.get(
    "/{listing_id}",
    response_model=ListingResponse,
    summary="Get a listing",
)
async def get_listing(
    listing_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Listing:
    return await ListingService(db).get_or_raise(listing_id)


@router.patch(
    "/{listing_id}",
    response_model=ListingResponse,
    summary="Update a listing",
)
async def update_listing(
    listing_id: uuid.UUID,
    payload: ListingUpdate,
    db: AsyncSession = Depends(get_db),
) -> Listing:
    return await ListingService(db).update(listing_id, payload)


@router.delete(
    "/{listing_id}",
    response_model=StatusMessage,
    summary="Delete a listing",
)
async def delete_listing(
    listing_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> StatusMessage:
    await ListingService(db).delete(listing_id)
    return StatusMessage(message=f"Listing {listing_id} deleted")


@router.post(
    "/{listing_id}/images",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a listing image",
)
async def upload_listing_image(
    listing_id: uuid.UUID,
    image: UploadFile = File(..., description="JPEG, PNG, GIF or WebP"),
    db: AsyncSession = Depends(get_db),
) -> ImageUploadResponse:
    """Store the image in GCS and append its URL to the listing's images."""
    log = logger.bind(listing_id=str(listing_id))
    service = ListingService(db)
    await service.get_or_raise(listing_id)

    file_bytes = await image.read()
    content_type = validate_image(
        file_bytes, image.content_type, get_settings().LISTING_IMAGE_MAX_MB
    )
    path = image_object_path("listings", listing_id, content_type)
    url = upload_file(path, file_bytes, content_type=content_type)
    log.info("listing_image_uploaded", gcs_path=path, size=len(file_bytes))

    listing = await service.append_image(listing_id, url)
    return ImageUploadResponse(url=url, images=listing.images)
