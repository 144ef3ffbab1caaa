"""
FastAPI server for the Moodboard service.

This module implements the HTTP API: a health check, entry creation with an
optional image upload, the feed, and static serving of uploaded images. A
cross-origin policy is applied to every request before it reaches a handler.
"""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import UploadFile
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from . import __version__
from .config import Settings, get_settings
from .exceptions import OriginRejected, StorageWriteError
from .models import Entry, utc_timestamp
from .store import EntryLog
from .uploads import PUBLIC_PREFIX, UploadStore

logger = logging.getLogger(__name__)

HEALTH_MESSAGE = "Moodboard API is running!"


class OriginPolicyMiddleware(BaseHTTPMiddleware):
    """
    Fail requests whose Origin header is not in the allow-list.

    Requests without an Origin header (curl, scripts) pass through untouched.
    """

    def __init__(self, app: ASGIApp, allowed_origins: tuple[str, ...]) -> None:
        super().__init__(app)
        self.allowed_origins = frozenset(allowed_origins)

    def _check(self, origin: str | None) -> None:
        if origin is not None and origin not in self.allowed_origins:
            raise OriginRejected(origin)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            self._check(request.headers.get("origin"))
        except OriginRejected as e:
            logger.warning(
                "Rejected %s %s from origin %s", request.method, request.url.path, e.origin
            )
            return PlainTextResponse(e.message, status_code=403)
        return await call_next(request)


async def _read_submission(request: Request) -> tuple[str | None, UploadFile | None]:
    """Pull the text field and optional image out of a form or JSON body."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Malformed JSON body") from None
        text = payload.get("text") if isinstance(payload, dict) else None
        return _as_text(text), None

    form = await request.form()
    image = form.get("image")
    # Browsers send an empty file part when no file was chosen
    if not isinstance(image, UploadFile) or not image.filename:
        image = None
    return _as_text(form.get("text")), image


def _as_text(value: object) -> str | None:
    # File parts and non-string JSON values are not note text
    return value if isinstance(value, str) else None


def create_app(
    entry_log: EntryLog,
    upload_store: UploadStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Create a FastAPI application around the given stores.

    Args:
        entry_log: The EntryLog instance holding the feed
        upload_store: Where images are written; built from settings if omitted
        settings: Process settings; ``get_settings()`` if omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    upload_store = upload_store or UploadStore(settings.upload_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for FastAPI application."""
        logger.info(
            "Moodboard API serving uploads from %s, allowed origins: %s",
            upload_store.directory,
            ", ".join(settings.allowed_origins) or "(none)",
        )
        yield

    app = FastAPI(
        title="Moodboard",
        description="A moodboard feed of short notes and images",
        version=__version__,
        lifespan=lifespan,
    )

    # Last added runs first: the origin check wraps the CORS headers.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(OriginPolicyMiddleware, allowed_origins=settings.allowed_origins)

    @app.exception_handler(StorageWriteError)
    async def handle_storage_error(
        request: Request, exc: StorageWriteError
    ) -> PlainTextResponse:
        """Image could not be saved; the whole submission is dropped."""
        logger.error("Error saving image: %s (%s)", exc.message, exc.context)
        return PlainTextResponse(exc.message, status_code=500)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        """Health check endpoint."""
        return HEALTH_MESSAGE

    @app.post("/post", status_code=201)
    async def create_entry(request: Request) -> Entry:
        """
        Create a feed entry from a text field and an optional image.

        The image, when present, is stored before the entry is built; if that
        fails nothing is appended and the client receives a 500.

        Returns:
            The newly created entry
        """
        timestamp = utc_timestamp()
        text, image = await _read_submission(request)

        image_path = None
        if image is not None:
            content = await image.read()
            image_path = await upload_store.save(content, image.filename)

        entry = Entry(text=text, image=image_path, timestamp=timestamp)
        await entry_log.append(entry)

        if image_path:
            logger.info("Posted new entry with image: %s", image_path)
        else:
            logger.info("Posted new entry without image")
        return entry

    @app.get("/feed")
    async def feed() -> list[Entry]:
        """
        Get every entry in the order they were posted.

        Returns:
            The full feed, oldest first
        """
        return await entry_log.read()

    app.mount(
        PUBLIC_PREFIX,
        StaticFiles(directory=upload_store.directory),
        name="uploads",
    )

    return app


def build_app() -> FastAPI:
    """Application factory used by uvicorn."""
    return create_app(EntryLog())


def setup_logging(level: str) -> None:
    """Configure root logging once for the server process."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)

    uvicorn.run(
        "moodboard.server:build_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
