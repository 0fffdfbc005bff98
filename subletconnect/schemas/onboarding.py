from typing import Optional

from subletconnect.schemas.common import ApiModel


class ExtractedProfile(ApiModel):
    full_name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    search_location: Optional[str] = None
    mode: Optional[str] = None
    bio: str = ""
    lifestyle_tags: list[str] = []


class VoiceOnboardingResponse(ApiModel):
    success: bool
    transcription: str
    profile: ExtractedProfile
