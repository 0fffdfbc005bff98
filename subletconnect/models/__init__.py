"""
SubletConnect: ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from subletconnect.models.account import Account
from subletconnect.models.listing import Listing, SavedListing
from subletconnect.models.match import Match, Message, Swipe

__all__ = [
    "Account",
    "Listing",
    "SavedListing",
    "Swipe",
    "Match",
    "Message",
]
