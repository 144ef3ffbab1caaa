"""
Configuration for the Moodboard service.

Settings are read once from the environment (prefix ``MOODBOARD_``) or a
``.env`` file when the process starts, and are frozen afterwards.
"""

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = (
    "http://localhost:8080,https://moodboard-deploy-frontend.onrender.com"
)


class Settings(BaseSettings):
    """Process-wide settings, immutable once constructed."""

    model_config = SettingsConfigDict(
        env_prefix="MOODBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
    )

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = Field(default="INFO")

    # ── Uploads ───────────────────────────────────────────────────────────
    upload_dir: str = Field(default="uploads")

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated list of origins allowed to call the API.
    cors_origins: str = Field(default=DEFAULT_CORS_ORIGINS)

    @property
    def allowed_origins(self) -> tuple[str, ...]:
        """Splits the comma-separated origins into a tuple."""
        return tuple(
            origin.strip() for origin in self.cors_origins.split(",") if origin.strip()
        )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        upper = v.upper()
        if upper not in logging.getLevelNamesMapping():
            raise ValueError(f"Invalid log_level '{v}'")
        return upper


@lru_cache
def get_settings() -> Settings:
    """Settings for this process, built on first use."""
    return Settings()
