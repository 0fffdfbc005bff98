"""
SubletConnect: Voice Onboarding

Turns a short spoken self-introduction into a draft profile:

  1. ElevenLabs speech-to-text (``scribe_v1``) over HTTPS via ``httpx``.
  2. Gemini extraction of name, age, gender, location, mode, bio and
     lifestyle tags from the transcription, returned as JSON.

Gemini calls walk a primary -> fallback model chain, each model retried
with exponential backoff on rate-limit and transient server errors.  The
extracted profile is a suggestion for the client form; nothing is persisted.
"""

from __future__ import annotations

import json
import re
from typing import Any

import google.generativeai as genai
import httpx
import structlog
from json_repair import repair_json
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from subletconnect.config import get_settings
from subletconnect.errors import ServiceUnavailable, TranscriptionEmpty, UpstreamError
from subletconnect.models.enums import AccountMode
from subletconnect.schemas.onboarding import ExtractedProfile

logger = structlog.get_logger("subletconnect.onboarding_service")

LIFESTYLE_TAGS: list[str] = [
    "Non-Smoker", "Very Clean", "Social Drinker", "Dog Lover", "Cat Lover",
    "Pet Friendly", "Early Bird", "Night Owl", "Works from Home", "Quiet",
    "Social", "Student", "Professional",
]

_GENDERS = {"male": "Male", "female": "Female", "other": "Other"}

SYSTEM_INSTRUCTION = f"""Extract profile information from this transcription. Return ONLY valid JSON:
{{
  "fullName": "extracted name or null",
  "age": extracted_number_or_null,
  "gender": "Male" or "Female" or "Other" or null,
  "searchLocation": "City, XX format (e.g. Oshawa, ON or Austin, TX) or null",
  "mode": "looking" or "offering" or null,
  "bio": "2-3 sentence summary",
  "lifestyleTags": ["matched tags from list"]
}}

IMPORTANT:
- searchLocation must ALWAYS be formatted as "City, XX" where XX is the 2-letter state/province code.
- gender should be inferred from context clues, name, or pronouns used. If unclear, set to null.
- mode is "offering" when the speaker has a place to rent out, "looking" when they need one.

Available lifestyle tags: {", ".join(LIFESTYLE_TAGS)}

Bio is first-person perspective."""


def _is_retryable_api_error(exc: BaseException) -> bool:
    """True for rate-limit (429) and transient server (500/503) errors."""
    exc_str = str(exc).lower()
    exc_type = type(exc).__name__.lower()

    if "429" in exc_str or "resource_exhausted" in exc_str:
        return True
    if "500" in exc_str or "503" in exc_str or "internal" in exc_str:
        return True
    if "resourceexhausted" in exc_type or "serviceunavailable" in exc_type:
        return True
    return False


class VoiceOnboardingService:
    """Speech-to-text plus LLM profile extraction."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        settings = get_settings()
        self._settings = settings
        self._http_client = http_client

        if settings.GEMINI_API_KEY:
            genai.configure(api_key=settings.GEMINI_API_KEY)

        self._model_chain: list[str] = [
            settings.GEMINI_MODEL_PRIMARY,
            settings.GEMINI_MODEL_FALLBACK,
        ]
        self._generation_config = genai.GenerationConfig(
            max_output_tokens=1024,
            response_mime_type="application/json",
        )

    # ── Public API ────────────────────────────────────────────────────────

    async def onboard(self, audio: bytes, filename: str = "recording.webm",
                      content_type: str = "audio/webm") -> dict:
        """Transcribe ``audio`` and extract a profile from it.

        Returns ``{"success": True, "transcription", "profile"}``.

        Raises
        ------
        ServiceUnavailable
            An API key is not configured.
        TranscriptionEmpty
            Speech-to-text returned no text.
        UpstreamError
            Speech-to-text or every Gemini model failed.
        """
        if not self._settings.ELEVEN_LABS_API_KEY:
            logger.error("onboarding_misconfigured", missing="ELEVEN_LABS_API_KEY")
            raise ServiceUnavailable("Server misconfiguration: ELEVEN_LABS_API_KEY is missing.")
        if not self._settings.GEMINI_API_KEY:
            logger.error("onboarding_misconfigured", missing="GEMINI_API_KEY")
            raise ServiceUnavailable("Server misconfiguration: GEMINI_API_KEY is missing.")

        log = logger.bind(audio_bytes=len(audio))
        log.info("voice_onboarding_start")

        transcription = await self.transcribe(audio, filename, content_type)
        if not transcription or not transcription.strip():
            raise TranscriptionEmpty()
        log.info("transcription_received", preview=transcription[:100])

        profile = await self.extract_profile(transcription)
        log.info("profile_extracted", fields=[k for k, v in profile.model_dump().items() if v])

        return {"success": True, "transcription": transcription, "profile": profile}

    async def transcribe(self, audio: bytes, filename: str, content_type: str) -> str:
        files = {"file": (filename, audio, content_type)}
        data = {"model_id": self._settings.ELEVEN_LABS_MODEL_ID}
        headers = {"xi-api-key": self._settings.ELEVEN_LABS_API_KEY}

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self._settings.ELEVEN_LABS_STT_URL, headers=headers, data=data, files=files
                )
            else:
                async with httpx.AsyncClient(timeout=60.0) as client:
                    response = await client.post(
                        self._settings.ELEVEN_LABS_STT_URL, headers=headers, data=data, files=files
                    )
        except httpx.HTTPError as exc:
            logger.error("speech_to_text_unreachable", error=str(exc))
            raise UpstreamError(f"Speech-to-text request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "speech_to_text_error",
                status=response.status_code,
                body=response.text[:200],
            )
            raise UpstreamError(f"Speech-to-text error: {response.status_code}")

        return (response.json() or {}).get("text") or ""

    async def extract_profile(self, transcription: str) -> ExtractedProfile:
        prompt = f'{SYSTEM_INSTRUCTION}\n\nTranscription: "{transcription}"'

        last_exception: Exception | None = None
        for model_name in self._model_chain:
            try:
                text = await self._call_gemini_with_retry(model_name, prompt)
                return self._normalise_profile(self._parse_json_response(text))
            except Exception as exc:
                last_exception = exc
                logger.warning("model_fallback", failed_model=model_name, error=str(exc))

        raise UpstreamError(f"Profile extraction failed. Last error: {last_exception}")

    # ── Gemini ────────────────────────────────────────────────────────────

    async def _call_gemini_with_retry(self, model_name: str, prompt: str) -> str:
        model = genai.GenerativeModel(model_name)

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(_is_retryable_api_error),
                stop=stop_after_attempt(3),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                reraise=True,
            ):
                with attempt:
                    response = await model.generate_content_async(
                        prompt,
                        generation_config=self._generation_config,
                    )
                    text = response.text
                    if not text or not text.strip():
                        raise ValueError(f"Gemini returned empty text for model {model_name}")
                    return text
        except RetryError as retry_err:
            logger.error(
                "gemini_retry_exhausted",
                model=model_name,
                last_error=str(retry_err.last_attempt.exception()),
            )
            raise retry_err.last_attempt.exception() from retry_err

    def _parse_json_response(self, text: str) -> dict:
        """Parse Gemini output: direct JSON, fenced JSON, brace extraction,
        then ``json_repair`` as a last resort."""
        if not text or not text.strip():
            raise ValueError("Empty response text")

        cleaned = text.strip()
        try:
            result = json.loads(cleaned)
            if isinstance(result, dict):
                return result
        except (json.JSONDecodeError, TypeError):
            pass

        md_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?\s*```", cleaned, re.DOTALL)
        if md_match:
            try:
                result = json.loads(md_match.group(1).strip())
                if isinstance(result, dict):
                    return result
            except (json.JSONDecodeError, TypeError):
                pass

        first_brace = cleaned.find("{")
        last_brace = cleaned.rfind("}")
        candidate = cleaned
        if first_brace >= 0 and last_brace > first_brace:
            candidate = cleaned[first_brace : last_brace + 1]
            try:
                result = json.loads(candidate)
                if isinstance(result, dict):
                    return result
            except (json.JSONDecodeError, TypeError):
                pass

        try:
            result = json.loads(repair_json(candidate))
            if isinstance(result, dict):
                logger.info("json_parsed_via_json_repair", original_preview=cleaned[:80])
                return result
        except (json.JSONDecodeError, TypeError, ValueError) as exc:
            logger.debug("json_repair_failed", error=str(exc))

        raise ValueError(f"Failed to parse JSON from Gemini response. Preview: {cleaned[:200]}")

    @staticmethod
    def _normalise_profile(raw: dict[str, Any]) -> ExtractedProfile:
        def pick(*keys):
            for key in keys:
                if raw.get(key) not in (None, "", "null"):
                    return raw[key]
            return None

        age = pick("age")
        try:
            age = int(age) if age is not None else None
        except (TypeError, ValueError):
            age = None

        gender = pick("gender")
        gender = _GENDERS.get(str(gender).lower()) if gender is not None else None

        mode = pick("mode")
        mode = str(mode).lower() if mode is not None else None
        if mode not in {m.value for m in AccountMode}:
            mode = None

        tags = raw.get("lifestyleTags", raw.get("lifestyle_tags"))
        allowed = {t.lower(): t for t in LIFESTYLE_TAGS}
        tags = [allowed[t.lower()] for t in tags if isinstance(t, str) and t.lower() in allowed] \
            if isinstance(tags, list) else []

        bio = raw.get("bio")
        full_name = pick("fullName", "full_name")
        location = pick("searchLocation", "search_location")

        return ExtractedProfile(
            full_name=str(full_name) if full_name is not None else None,
            age=age,
            gender=gender,
            search_location=str(location) if location is not None else None,
            mode=mode,
            bio=bio if isinstance(bio, str) else "",
            lifestyle_tags=tags,
        )
