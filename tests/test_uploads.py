"""
Tests for the UploadStore implementation.

These tests verify directory initialization, stored file naming, and that
write failures surface as StorageWriteError without leaving files behind.
"""

import asyncio
import re
from contextlib import asynccontextmanager

import pytest

from moodboard import uploads
from moodboard.exceptions import StorageWriteError
from moodboard.uploads import UploadStore, safe_filename


class TestUploadStore:
    """Test suite for UploadStore functionality."""

    @pytest.fixture(autouse=True)
    def setup_store(self, tmp_path):
        """Set up a fresh UploadStore in a temporary directory for each test."""
        self.directory = tmp_path / "nested" / "uploads"
        self.store = UploadStore(self.directory)

    def test_creates_directory(self):
        """Test that the upload directory is created when missing."""
        assert self.directory.is_dir()

    def test_init_is_idempotent(self):
        """Test that initializing over an existing directory keeps its files."""
        (self.directory / "existing.png").write_bytes(b"keep")

        UploadStore(self.directory)

        assert (self.directory / "existing.png").read_bytes() == b"keep"

    async def test_save_and_read_back(self):
        """Test that saved bytes land on disk under the returned public path."""
        content = b"\x89PNG\r\n\x1a\nfake image bytes"

        public_path = await self.store.save(content, "beach.png")

        assert re.fullmatch(r"/uploads/\d+-beach\.png", public_path)
        assert self.store.path_for(public_path).read_bytes() == content

    async def test_same_filename_never_collides(self):
        """Test that rapid saves of the same filename get distinct names."""
        paths = [await self.store.save(bytes([i]), "same.png") for i in range(20)]

        assert len(set(paths)) == 20
        for i, path in enumerate(paths):
            assert self.store.path_for(path).read_bytes() == bytes([i])

    async def test_no_partial_files_left(self):
        """Test that only the final file remains after a save."""
        await self.store.save(b"data", "photo.jpg")

        names = [p.name for p in self.directory.iterdir()]
        assert len(names) == 1
        assert not names[0].startswith(".")

    async def test_write_failure_raises(self, monkeypatch):
        """Test that an OS error while writing raises StorageWriteError."""

        def failing_open(*args, **kwargs):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(uploads.aiofiles, "open", failing_open)

        with pytest.raises(StorageWriteError) as exc_info:
            await self.store.save(b"data", "photo.jpg")

        assert exc_info.value.message == "Error saving image"
        assert "No space left" in exc_info.value.context["os_error"]
        assert list(self.directory.iterdir()) == []

    async def test_cancelled_write_leaves_nothing(self, monkeypatch):
        """Test that a save cancelled mid-write removes its temporary file."""
        real_open = uploads.aiofiles.open
        write_started = asyncio.Event()

        class SlowFile:
            def __init__(self, f):
                self._f = f

            async def write(self, data):
                await self._f.write(data[:1])
                await self._f.flush()
                write_started.set()
                await asyncio.sleep(10)

        @asynccontextmanager
        async def slow_open(path, mode):
            async with real_open(path, mode) as f:
                yield SlowFile(f)

        monkeypatch.setattr(uploads.aiofiles, "open", slow_open)

        task = asyncio.create_task(self.store.save(b"partial data", "photo.jpg"))
        await asyncio.wait_for(write_started.wait(), timeout=2.0)

        # Only the hidden temporary file exists while the write is in flight
        in_flight = [p.name for p in self.directory.iterdir()]
        assert len(in_flight) == 1
        assert in_flight[0].startswith(".") and in_flight[0].endswith(".part")

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert list(self.directory.iterdir()) == []

    async def test_missing_directory_raises(self):
        """Test that a directory replaced by a plain file fails the write."""
        self.directory.rmdir()
        self.directory.write_bytes(b"not a directory")

        with pytest.raises(StorageWriteError):
            await self.store.save(b"data", "photo.jpg")


class TestSafeFilename:
    """Tests for filename reduction."""

    def test_plain_name_unchanged(self):
        assert safe_filename("beach.png") == "beach.png"

    def test_path_components_stripped(self):
        assert safe_filename("../../etc/passwd") == "passwd"
        assert safe_filename("..\\..\\evil.png") == "evil.png"

    def test_unsafe_characters_replaced(self):
        assert safe_filename("my photo (1).png") == "my_photo__1_.png"

    def test_hidden_and_empty_names(self):
        assert safe_filename(".hidden.png") == "hidden.png"
        assert safe_filename("..") == "upload"
        assert safe_filename("") == "upload"
