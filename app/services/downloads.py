"""
Download gateway.

Turns an authorized FileRecord into a byte stream. The download counter is
incremented before streaming starts: a client that aborts mid-stream is
still counted, but a successful read is never missed.
"""
from dataclasses import dataclass
from typing import AsyncIterator
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.logging_config import setup_logging
from app.models.file_record import FileRecord
from app.services import file_records
from app.storage.base import StorageBackend

logger = setup_logging()

DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass
class DownloadHandle:
    """Everything the HTTP layer needs to stream one file."""
    file_id: str
    filename: str
    media_type: str
    size: int
    stream: AsyncIterator[bytes]

    @property
    def headers(self) -> dict[str, str]:
        # URL encode the filename to handle non-ASCII characters
        return {
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(self.filename)}",
            "Content-Length": str(self.size),
        }


class DownloadGateway:
    def __init__(self, db: Session, storage: StorageBackend):
        self.db = db
        self.storage = storage

    def open(self, record: FileRecord) -> DownloadHandle:
        """
        Verify the blob, count the download and return a stream handle.

        Raises:
            NotFoundError: Metadata exists but the blob is gone
        """
        if not self.storage.file_exists(record.blob_ref):
            logger.error(
                f"Blob missing for file record: file_id={record.id}, blob_ref={record.blob_ref}"
            )
            raise NotFoundError("File not found in the server", data={"reason": "gone"})

        file_records.increment_download_count(self.db, record.id)
        logger.info(f"File download started: file_id={record.id}")

        return DownloadHandle(
            file_id=record.id,
            filename=record.file_name,
            media_type=record.mime_type or DEFAULT_MEDIA_TYPE,
            size=record.size,
            stream=self.storage.open_read_stream(record.blob_ref),
        )
