"""
SubletConnect: Application Configuration

Loads all configuration from environment variables (and an optional .env file)
using Pydantic Settings.  A cached ``get_settings()`` helper is provided so that
FastAPI dependency-injection (and any other call-site) always receives the same
validated instance without re-parsing the environment on every request.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Hard ceiling on a feed page, whatever FEED_MAX_LIMIT says.
FEED_LIMIT_CEILING = 50


class Settings(BaseSettings):
    """Central configuration for the SubletConnect backend."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------ #
    # Database – Cloud SQL via connector, or plain DATABASE_URL
    # ------------------------------------------------------------------ #
    DATABASE_URL: str
    DB_USER: str = "sublet_user"
    DB_PASSWORD: str = ""
    DB_NAME: str = "subletconnect"
    CLOUD_SQL_INSTANCE_CONNECTION: str = ""
    CLOUD_SQL_USE_UNIX_SOCKET: bool = False

    # ------------------------------------------------------------------ #
    # Redis – match event fan-out (empty URL disables publishing)
    # ------------------------------------------------------------------ #
    REDIS_URL: str = ""
    MATCH_EVENTS_CHANNEL_PREFIX: str = "subletconnect:matches"

    # ------------------------------------------------------------------ #
    # Google Cloud Storage – listing images and profile pictures
    # ------------------------------------------------------------------ #
    GCP_PROJECT_ID: str = ""
    GCS_BUCKET_NAME: str = ""
    LISTING_IMAGE_MAX_MB: int = 10
    PROFILE_IMAGE_MAX_MB: int = 5

    # ------------------------------------------------------------------ #
    # Voice onboarding (speech-to-text + Gemini profile extraction)
    # ------------------------------------------------------------------ #
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL_PRIMARY: str = "gemini-2.0-flash"
    GEMINI_MODEL_FALLBACK: str = "gemini-1.5-flash"
    ELEVEN_LABS_API_KEY: str = ""
    ELEVEN_LABS_STT_URL: str = "https://api.elevenlabs.io/v1/speech-to-text"
    ELEVEN_LABS_MODEL_ID: str = "scribe_v1"

    # ------------------------------------------------------------------ #
    # Discovery feed
    # ------------------------------------------------------------------ #
    FEED_DEFAULT_LIMIT: int = 20
    FEED_MAX_LIMIT: int = 50

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT_SECONDS: float = 30.0

    # ------------------------------------------------------------------ #
    # CORS
    # ------------------------------------------------------------------ #
    ALLOWED_ORIGINS: str = "*"

    # ------------------------------------------------------------------ #
    # Derived helpers
    # ------------------------------------------------------------------ #
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list split on commas."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @field_validator("FEED_DEFAULT_LIMIT", "FEED_MAX_LIMIT")
    @classmethod
    def _limit_in_range(cls, v: int) -> int:
        if not 1 <= v <= FEED_LIMIT_CEILING:
            raise ValueError(
                f"Feed limits must be between 1 and {FEED_LIMIT_CEILING}, got {v}"
            )
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached, validated ``Settings`` instance.

    Using ``@lru_cache`` guarantees the .env file is read and validated
    exactly once per process lifetime::

        from subletconnect.config import get_settings
        settings = get_settings()
    """
    return Settings()  # type: ignore[call-arg]
