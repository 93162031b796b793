"""
Blob storage dependency.

The backend is built once per process and shared by request handlers and
the Drive mirror, so both resolve blob refs against the same root.
"""
from functools import lru_cache

from app.config import settings
from app.storage.base import StorageBackend
from app.storage.local import LocalStorageBackend


@lru_cache
def get_storage() -> StorageBackend:
    """
    Raises:
        ValueError: STORAGE_BACKEND names a backend that is not available
    """
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "local":
        return LocalStorageBackend(
            base_path=settings.STORAGE_BASE_PATH,
            max_size_mb=settings.MAX_UPLOAD_SIZE_MB,
        )

    raise ValueError(f"Unsupported STORAGE_BACKEND '{settings.STORAGE_BACKEND}' (expected 'local')")
