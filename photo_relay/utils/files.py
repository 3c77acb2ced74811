from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import UploadFile

from photo_relay.errors import IngestInvalid

log = logging.getLogger(__name__)

ALLOWED_SUFFIXES = {".png", ".jpg", ".jpeg", ".webp"}


class TempFileManager:
    """
    Transient storage for received uploads.

    Every path handed out by `receive()` is deleted when the context exits,
    whatever the outcome of the request.
    """

    def __init__(self, base_dir: Path, max_bytes: int = 20 * 1024 * 1024, chunk_size: int = 1024 * 1024):
        self.base_dir = base_dir.expanduser().resolve()
        self.max_bytes = max_bytes
        self.chunk_size = chunk_size

    def new_path(self, filename: Optional[str]) -> Path:
        suffix = Path(filename or "").suffix.lower()
        if suffix not in ALLOWED_SUFFIXES:
            suffix = ""
        return self.base_dir / f"{uuid.uuid4().hex}{suffix}"

    async def _write(self, upload: UploadFile, path: Path) -> int:
        await asyncio.to_thread(self.base_dir.mkdir, parents=True, exist_ok=True)
        size = 0
        fh = await asyncio.to_thread(path.open, "wb")
        try:
            while chunk := await upload.read(self.chunk_size):
                size += len(chunk)
                if size > self.max_bytes:
                    raise IngestInvalid(
                        "File too large",
                        details=f"upload exceeds {self.max_bytes} bytes",
                        status_code=413,
                    )
                await asyncio.to_thread(fh.write, chunk)
        finally:
            await asyncio.to_thread(fh.close)
        return size

    async def cleanup(self, path: Path) -> bool:
        """Delete a temp file. Failures are logged, never raised."""
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
            return True
        except OSError as e:
            log.warning("Failed to delete temp file %s: %s", path, e)
            return False

    @asynccontextmanager
    async def receive(self, upload: Optional[UploadFile]) -> AsyncIterator[Path]:
        if upload is None or not upload.filename:
            raise IngestInvalid("No file provided", details="multipart field 'file' is required")

        path = self.new_path(upload.filename)
        try:
            size = await self._write(upload, path)
            if size == 0:
                raise IngestInvalid("Empty file", details=f"'{upload.filename}' has no content")
            log.debug("Stored upload %s -> %s (%s bytes)", upload.filename, path, size)
            yield path
        finally:
            await self.cleanup(path)
