"""
SubletConnect: Locations API

Feeds the client's location filter with every place that currently has a
listing or a seeker.
"""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from subletconnect.database import get_db
from subletconnect.schemas.listing import LocationsResponse
from subletconnect.services.listing_service import ListingService

logger = structlog.get_logger("subletconnect.api.locations")

router = APIRouter()


@router.get("", response_model=LocationsResponse, summary="Known locations")
async def get_locations(db: AsyncSession = Depends(get_db)) -> LocationsResponse:
    locations = await ListingService(db).locations()
    logger.info("locations_listed", count=len(locations))
    return LocationsResponse(locations=locations, count=len(locations))
