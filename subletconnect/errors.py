"""
SubletConnect: Domain error taxonomy.

Services raise these; ``subletconnect.main`` renders every one of them as
``{"code": kind, "message": ..., "details": [...]}`` with the class's HTTP
status.  ``kind`` is the stable machine-readable identifier clients branch on.
"""

from __future__ import annotations

from typing import Any


class SubletError(Exception):
    """Base class for all errors surfaced to API callers."""

    kind: str = "ServerError"
    status_code: int = 500
    default_message: str = "Internal server error."

    def __init__(
        self,
        message: str | None = None,
        details: list[Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details or []
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.kind, "message": self.message, "details": self.details}


# ── Validation (400) ─────────────────────────────────────────────────────────

class ValidationFailed(SubletError):
    kind = "InvalidRequest"
    status_code = 400
    default_message = "Request validation failed."


class MissingField(ValidationFailed):
    kind = "MissingField"
    default_message = "Missing required fields."


class MissingUserId(ValidationFailed):
    kind = "MissingUserId"
    default_message = "userId query parameter is required."


class InvalidDirection(ValidationFailed):
    kind = "InvalidDirection"
    default_message = "Invalid direction. Must be 'like', 'pass', or 'superlike'."


class InvalidSwipedType(ValidationFailed):
    kind = "InvalidSwipedType"
    default_message = "Invalid swipedType. Must be 'user' or 'listing'."


class InvalidMode(ValidationFailed):
    kind = "InvalidMode"
    default_message = "Invalid mode. Must be 'looking' or 'offering'."


class InvalidListingType(ValidationFailed):
    kind = "InvalidListingType"
    default_message = "Invalid type. Must be 'studio', '1br', '2br', or 'room'."


class SelfSwipe(ValidationFailed):
    kind = "SelfSwipe"
    default_message = "Cannot swipe on yourself."


class InvalidJson(ValidationFailed):
    kind = "InvalidJson"
    default_message = "Invalid JSON in request body."


class InvalidImage(ValidationFailed):
    kind = "InvalidImage"
    default_message = "Invalid image upload."


class TranscriptionEmpty(ValidationFailed):
    kind = "TranscriptionEmpty"
    default_message = "Could not transcribe audio. Please try again with clearer speech."


# ── Forbidden (403) ──────────────────────────────────────────────────────────

class NotMatchParticipant(SubletError):
    kind = "NotMatchParticipant"
    status_code = 403
    default_message = "User is not part of this match."


# ── Not found (404) ──────────────────────────────────────────────────────────

class NotFound(SubletError):
    kind = "NotFound"
    status_code = 404
    default_message = "Resource not found."


class UserNotFound(NotFound):
    kind = "UserNotFound"
    default_message = "User not found."


class ListingNotFound(NotFound):
    kind = "ListingNotFound"
    default_message = "Listing not found."


class MatchNotFound(NotFound):
    kind = "MatchNotFound"
    default_message = "Match not found."


class SwipeNotFound(NotFound):
    kind = "SwipeNotFound"
    default_message = "Swipe not found."


class SavedListingNotFound(NotFound):
    kind = "SavedListingNotFound"
    default_message = "Saved listing not found."


# ── Conflict (409) ───────────────────────────────────────────────────────────

class Conflict(SubletError):
    kind = "Conflict"
    status_code = 409
    default_message = "Conflicting request."


class DuplicateSwipe(Conflict):
    kind = "DuplicateSwipe"
    default_message = "Already swiped on this candidate."


class AlreadySaved(Conflict):
    kind = "AlreadySaved"
    default_message = "Listing already saved."


class IdentityTaken(Conflict):
    kind = "IdentityTaken"
    default_message = "An account is already linked to this identity."


class ModeChangeBlocked(Conflict):
    kind = "ModeChangeBlocked"
    default_message = "Delete your listings before switching to looking mode."


class OwnerNotOffering(Conflict):
    kind = "OwnerNotOffering"
    default_message = "Only accounts in offering mode can create listings."


# ── Upstream / configuration (5xx) ───────────────────────────────────────────

class UpstreamError(SubletError):
    kind = "UpstreamError"
    status_code = 502
    default_message = "Upstream service error."


class ServiceUnavailable(SubletError):
    kind = "ServiceUnavailable"
    status_code = 503
    default_message = "Service is not configured."
