"""
Blob storage abstraction layer.

This package provides an S3-compatible interface for blob storage,
allowing easy migration between local filesystem and cloud storage.
"""

from app.storage.base import StorageBackend, StoredBlob
from app.storage.local import LocalStorageBackend
from app.storage.exceptions import (
    BlobNotFoundError,
    FileSizeExceededError,
    StorageError,
    UnsupportedContentTypeError,
)

__all__ = [
    "StorageBackend",
    "StoredBlob",
    "LocalStorageBackend",
    "BlobNotFoundError",
    "FileSizeExceededError",
    "StorageError",
    "UnsupportedContentTypeError",
]
