import logging
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Project root and configs directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIGS_DIR = PROJECT_ROOT / "configs"


class Settings(BaseSettings):
    PROJECT_NAME: str = "Jeom-Gong Master"
    GEMINI_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
        description="API key for the Gemini adjustment provider",
    )
    GEMINI_MODEL: str = "gemini-2.5-flash"
    AI_ADJUSTMENT_ENABLED: bool = True
    AI_TIMEOUT_SECONDS: float = 15.0
    AI_CACHE_TTL_SECONDS: float = 600.0
    # Reveal season runs on Korean time; the anchor for time decay follows it
    TIMEZONE: str = "Asia/Seoul"
    HISTORY_FILE: Path = CONFIGS_DIR / "saved_analyses.json"

    @field_validator("AI_TIMEOUT_SECONDS", "AI_CACHE_TTL_SECONDS")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeouts and TTLs must be positive, got: {v}")
        return v

    @field_validator("TIMEZONE")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject zone names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown TIMEZONE '{v}'") from exc
        return v

    @field_validator("HISTORY_FILE")
    @classmethod
    def validate_history_file(cls, v: Path) -> Path:
        if v.exists() and not v.is_file():
            logger.warning(
                "HISTORY_FILE '%s' is not a file. Saved analyses will not persist.",
                v,
            )
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )


settings = Settings()
