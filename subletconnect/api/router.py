"""
SubletConnect: Main API Router

Aggregates all sub-routers so that ``subletconnect.main`` can mount the
whole API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from subletconnect.api import (
    candidates,
    listings,
    locations,
    matches,
    messages,
    onboarding,
    saved,
    swipes,
    users,
)

router = APIRouter()

router.include_router(swipes.router, prefix="/swipes", tags=["Swipes"])
router.include_router(candidates.router, prefix="/candidates", tags=["Candidates"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(listings.router, prefix="/listings", tags=["Listings"])
router.include_router(locations.router, prefix="/locations", tags=["Locations"])
router.include_router(matches.router, prefix="/matches", tags=["Matches"])
router.include_router(messages.router, prefix="/messages", tags=["Messages"])
router.include_router(saved.router, prefix="/saved", tags=["Saved Listings"])
router.include_router(onboarding.router, prefix="/onboarding", tags=["Onboarding"])
