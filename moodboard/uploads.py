"""
Upload storage for the Moodboard service.

Images are written into a single directory and served back by the HTTP layer
under ``/uploads``. Stored names are ``{epochMillis}-{safeName}``: the
millisecond prefix strictly increases within the process, and the submitted
filename is reduced to a plain basename so it can never escape the directory.
"""

import asyncio
import logging
import os
import re
import time
import uuid
from pathlib import Path

import aiofiles

from .exceptions import StorageWriteError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def safe_filename(filename: str) -> str:
    """Reduce a client-supplied filename to a basename safe to store on disk."""
    basename = filename.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_CHARS.sub("_", basename).lstrip(".")
    return cleaned or "upload"


class UploadStore:
    """
    Directory-backed store for uploaded images.

    Writes go to a hidden temporary file first and are renamed into place once
    complete, so a failed or cancelled write never leaves a partial file under
    a public name.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory).resolve()
        self.directory.mkdir(parents=True, exist_ok=True)
        self._last_millis = 0
        logger.info("UploadStore initialized with directory=%s", self.directory)

    def _next_millis(self) -> int:
        millis = time.time_ns() // 1_000_000
        if millis <= self._last_millis:
            millis = self._last_millis + 1
        self._last_millis = millis
        return millis

    def stored_name(self, filename: str) -> str:
        """Build a unique on-disk name for an upload."""
        return f"{self._next_millis()}-{safe_filename(filename)}"

    def path_for(self, public_path: str) -> Path:
        """Resolve a public ``/uploads/...`` path to its location on disk."""
        name = public_path.removeprefix(PUBLIC_PREFIX + "/")
        return self.directory / safe_filename(name)

    async def save(self, content: bytes, filename: str) -> str:
        """
        Write uploaded bytes to the store.

        Args:
            content: Raw file bytes
            filename: The filename the client submitted

        Returns:
            The public path of the stored file, e.g. ``/uploads/1700000000000-a.png``

        Raises:
            StorageWriteError: If the bytes could not be written
        """
        name = self.stored_name(filename)
        target = self.directory / name
        partial = self.directory / f".{name}.{uuid.uuid4().hex}.part"

        try:
            async with aiofiles.open(partial, "wb") as f:
                await f.write(content)
            os.replace(partial, target)
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", target, e)
            _discard(partial)
            raise StorageWriteError(
                context={"path": str(target), "os_error": str(e)}
            ) from e
        except asyncio.CancelledError:
            logger.warning("Upload of %s cancelled before completion", name)
            _discard(partial)
            raise

        logger.info("File stored: %s (%d bytes)", name, len(content))
        return f"{PUBLIC_PREFIX}/{name}"


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove partial upload %s: %s", path, e)
