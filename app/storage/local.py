"""
Local filesystem storage implementation.

This module provides a local filesystem implementation of the storage backend
with async file operations and S3-compatible directory structure.
"""
import os
from pathlib import Path
from typing import AsyncIterator

import aiofiles

from app.config import settings
from app.storage.base import StorageBackend, StoredBlob
from app.storage.exceptions import BlobNotFoundError, FileSizeExceededError, StorageError


class LocalStorageBackend(StorageBackend):
    """
    Local filesystem storage with async operations.

    Uses sharded directory structure for efficient file organization:
    <base_path>/files/<prefix>/<blob_id><ext>

    The blob reference handed back to callers is the path relative to
    base_path, so the same reference maps directly to an S3 key.
    """

    def __init__(self, base_path: str | None = None, max_size_mb: int | None = None):
        """
        Initialize local storage backend.

        Args:
            base_path: Base directory for blob storage (default from config)
            max_size_mb: Maximum file size in MB (default from config)
        """
        self.base_path = Path(base_path or settings.STORAGE_BASE_PATH)
        if max_size_mb is None:
            max_size_mb = settings.MAX_UPLOAD_SIZE_MB
        self.max_size_bytes = max_size_mb * 1024 * 1024

    async def save_file(
        self,
        blob_id: str,
        file_stream: AsyncIterator[bytes],
        content_type: str,
        extension: str = "",
    ) -> StoredBlob:
        """
        Stream file to disk in chunks (async).

        Partial files are removed when the size limit is hit or the write
        fails, so a failed upload never leaves an orphaned blob behind.
        """
        blob_ref = self._build_blob_ref(blob_id, extension)
        file_path = self._resolve(blob_ref)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        total_size = 0
        try:
            async with aiofiles.open(file_path, "wb") as f:
                async for chunk in file_stream:
                    total_size += len(chunk)
                    if total_size > self.max_size_bytes:
                        raise FileSizeExceededError(total_size, self.max_size_bytes)
                    await f.write(chunk)
        except StorageError:
            self._remove_quietly(file_path)
            raise
        except OSError as e:
            self._remove_quietly(file_path)
            raise StorageError(f"Failed to save file: {e}") from e

        return StoredBlob(blob_ref=blob_ref, size=total_size, content_type=content_type)

    async def open_read_stream(
        self, blob_ref: str, chunk_size: int = 64 * 1024
    ) -> AsyncIterator[bytes]:
        file_path = self._resolve(blob_ref)
        if not file_path.exists():
            raise BlobNotFoundError(blob_ref)

        async with aiofiles.open(file_path, "rb") as f:
            while chunk := await f.read(chunk_size):
                yield chunk

    def get_file_path(self, blob_ref: str) -> str:
        file_path = self._resolve(blob_ref)
        if not file_path.exists():
            raise BlobNotFoundError(blob_ref)
        return str(file_path)

    async def delete_file(self, blob_ref: str) -> None:
        file_path = self._resolve(blob_ref)
        if not file_path.exists():
            raise BlobNotFoundError(blob_ref)

        try:
            os.remove(file_path)
        except OSError as e:
            raise StorageError(f"Failed to delete file: {e}") from e

    def file_exists(self, blob_ref: str) -> bool:
        try:
            return self._resolve(blob_ref).is_file()
        except BlobNotFoundError:
            return False

    def _build_blob_ref(self, blob_id: str, extension: str) -> str:
        """
        Calculate the blob reference using a sharded structure.

        Example: files/a3/a3b8f2d4e1c94b0e8f1c2d3e4f5a6b7c.pdf
        """
        # Use first 2 characters as prefix for sharding
        prefix = blob_id[:2] if len(blob_id) >= 2 else blob_id
        return f"files/{prefix}/{blob_id}{extension.lower()}"

    def _resolve(self, blob_ref: str) -> Path:
        path = (self.base_path / blob_ref).resolve()
        # Blob references come from our own records, but never follow one
        # outside the storage root.
        if not path.is_relative_to(self.base_path.resolve()):
            raise BlobNotFoundError(blob_ref)
        return path

    @staticmethod
    def _remove_quietly(file_path: Path) -> None:
        try:
            file_path.unlink(missing_ok=True)
        except OSError:
            pass
