"""
Abstract base class for blob storage backends.

This module defines the interface that all storage backends must implement.
The access-control core never touches blob contents; it only keeps the
opaque blob reference returned by save_file() and asks the backend whether
that reference still resolves.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator


@dataclass
class StoredBlob:
    """Metadata returned after a blob has been persisted."""
    blob_ref: str
    size: int
    content_type: str


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    All storage implementations (local filesystem, S3, etc.) must implement
    these methods to ensure compatibility and easy migration.
    """

    @abstractmethod
    async def save_file(
        self,
        blob_id: str,
        file_stream: AsyncIterator[bytes],
        content_type: str,
        extension: str = "",
    ) -> StoredBlob:
        """
        Save a blob to storage.

        Args:
            blob_id: Unique identifier for the blob
            file_stream: Async iterator yielding file chunks
            content_type: MIME type of the file
            extension: Optional file extension kept on the stored name

        Returns:
            StoredBlob with the opaque blob reference and byte size

        Raises:
            FileSizeExceededError: If file exceeds maximum size
            StorageError: If save operation fails
        """
        pass

    @abstractmethod
    def open_read_stream(self, blob_ref: str, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
        """
        Stream the blob's bytes.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """
        pass

    @abstractmethod
    def get_file_path(self, blob_ref: str) -> str:
        """
        Get a local path for the blob (used by the Drive mirror upload).

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """
        pass

    @abstractmethod
    async def delete_file(self, blob_ref: str) -> None:
        """
        Delete a blob from storage.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
            StorageError: If delete operation fails
        """
        pass

    @abstractmethod
    def file_exists(self, blob_ref: str) -> bool:
        """Check if a blob exists in storage."""
        pass
