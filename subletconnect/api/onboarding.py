"""
SubletConnect: Voice onboarding API
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, File, UploadFile

from subletconnect.errors import MissingField
from subletconnect.schemas.onboarding import VoiceOnboardingResponse
from subletconnect.services.onboarding_service import VoiceOnboardingService

logger = structlog.get_logger("subletconnect.api.onboarding")

router = APIRouter()

# ── Service singleton ─────────────────────────────────────────────────────────

_onboarding_service: VoiceOnboardingService | None = None


def get_onboarding_service() -> VoiceOnboardingService:
    global _onboarding_service
    if _onboarding_service is None:
        _onboarding_service = VoiceOnboardingService()
    return _onboarding_service


@router.post(
    "/voice",
    response_model=VoiceOnboardingResponse,
    summary="Draft a profile from a voice recording",
)
async def voice_onboarding(
    audio: UploadFile = File(..., description="Recorded self-introduction"),
    service: VoiceOnboardingService = Depends(get_onboarding_service),
) -> dict:
    """Transcribe the recording and extract profile fields from it.  The
    result pre-fills the sign-up form; nothing is stored."""
    audio_bytes = await audio.read()
    if not audio_bytes:
        raise MissingField("Missing required field: audio", details=["audio"])
    return await service.onboard(
        audio_bytes,
        filename=audio.filename or "recording.webm",
        content_type=audio.content_type or "audio/webm",
    )
