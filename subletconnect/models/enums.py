"""
SubletConnect: closed value sets shared by models, schemas and services.

Values are stored as plain strings so that adding a member never needs a
database enum migration.
"""

from enum import Enum


class AccountMode(str, Enum):
    LOOKING = "looking"
    OFFERING = "offering"


class ListingType(str, Enum):
    STUDIO = "studio"
    ONE_BR = "1br"
    TWO_BR = "2br"
    ROOM = "room"


class SwipedType(str, Enum):
    USER = "user"
    LISTING = "listing"


class SwipeDirection(str, Enum):
    LIKE = "like"
    PASS = "pass"
    SUPERLIKE = "superlike"

    @property
    def is_positive(self) -> bool:
        return self is not SwipeDirection.PASS


# Directions that count as interest when looking for a reverse swipe.
POSITIVE_DIRECTIONS: tuple[str, ...] = (
    SwipeDirection.LIKE.value,
    SwipeDirection.SUPERLIKE.value,
)


class MatchKind(str, Enum):
    USER_USER = "user_user"
    USER_LISTING = "user_listing"


class CandidateType(str, Enum):
    USERS = "users"
    LISTINGS = "listings"
