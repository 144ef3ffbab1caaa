"""
Application exceptions for the Moodboard service.

Every failure is request-scoped: services raise these, and the HTTP layer
turns them into a status code and a plain-text body. The ``context`` dict is
for server-side logs only and is never returned to clients.
"""

from typing import Any


class MoodboardError(Exception):
    """Base exception for all Moodboard errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class StorageWriteError(MoodboardError):
    """
    Raised when uploaded image bytes could not be written to disk.

    HTTP: 500, and the submission that carried the image is discarded.
    """

    def __init__(
        self,
        message: str = "Error saving image",
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, context=context)


class OriginRejected(MoodboardError):
    """Raised when a request's Origin header is not in the allow-list."""

    def __init__(self, origin: str) -> None:
        super().__init__(message="Not allowed by CORS", context={"origin": origin})
        self.origin = origin
