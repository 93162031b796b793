"""
Storage-specific exceptions.

These exceptions provide detailed error handling for blob storage operations.
"""


class StorageError(Exception):
    """Base exception for storage operations."""

    pass


class FileSizeExceededError(StorageError):
    """Raised when uploaded file exceeds maximum size limit."""

    def __init__(self, file_size: int, max_size: int):
        self.file_size = file_size
        self.max_size = max_size
        super().__init__(
            f"File size ({file_size} bytes) exceeds maximum allowed size ({max_size} bytes)"
        )


class UnsupportedContentTypeError(StorageError):
    """Raised when the uploaded MIME type is not on the allow-list."""

    def __init__(self, content_type: str | None):
        self.content_type = content_type
        super().__init__(f"Unsupported file type: {content_type}")


class BlobNotFoundError(StorageError):
    """Raised when a blob reference no longer points at stored bytes."""

    def __init__(self, blob_ref: str):
        self.blob_ref = blob_ref
        super().__init__(f"Blob not found: {blob_ref}")
