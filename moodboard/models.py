"""
Shared data models for the Moodboard service.

This module defines the core domain models used across multiple layers
of the application (business logic, CLI, API).
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Entry(BaseModel):
    """Represents one moodboard post."""

    model_config = ConfigDict(frozen=True)

    text: str | None = Field(None, description="Free-form note text")
    image: str | None = Field(
        None, description="Public path of the stored image, if any"
    )
    timestamp: str = Field(
        default_factory=utc_timestamp, description="ISO-8601 creation time"
    )
