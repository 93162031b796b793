"""
Google Drive mirror.

Best-effort, one-way copy of uploaded blobs into the owner's Google Drive.
The mirror never gates the primary operation: uploads and explicit sync
requests only mark the record ``pending`` and schedule mirror_file() as a
background task. Its outcome is written back as ``synced`` or ``failed``.

The Drive client is constructed once at application startup from the OAuth
client settings and handed to the sink; there is no module-level client.
The Google SDK is synchronous, so uploads run in a worker thread via
asyncio.to_thread.
"""
import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload
from sqlalchemy.orm import Session

from app.exceptions import UpstreamUnavailableError
from app.logging_config import setup_logging
from app.models.file_record import DriveSyncStatus, FileRecord
from app.models.user import User
from app.services import file_records
from app.storage.base import StorageBackend
from app.storage.exceptions import StorageError
from app.utils.datetime import ensure_aware, utcnow

logger = setup_logging()

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.file"]


@dataclass
class DriveCredentials:
    """A user's stored Drive OAuth tokens."""
    access_token: str | None
    refresh_token: str
    expiry: datetime | None = None


@dataclass
class DriveUpload:
    """Result of a successful Drive upload."""
    file_id: str
    link: str | None
    credentials: DriveCredentials


class GoogleDriveClient:
    """Thin synchronous wrapper over the Drive v3 files.create call."""

    def __init__(self, client_id: str, client_secret: str, token_uri: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_uri = token_uri

    def _build_credentials(self, creds: DriveCredentials) -> Credentials:
        # google-auth compares expiry against a naive UTC datetime
        expiry = ensure_aware(creds.expiry)
        return Credentials(
            token=creds.access_token,
            refresh_token=creds.refresh_token,
            token_uri=self.token_uri,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=DRIVE_SCOPES,
            expiry=expiry.replace(tzinfo=None) if expiry else None,
        )

    def upload(
        self,
        creds: DriveCredentials,
        file_path: str,
        filename: str,
        mime_type: str,
    ) -> DriveUpload:
        """
        Upload a local file to the user's Drive root.

        Raises:
            UpstreamUnavailableError: Token refresh or Drive API failure
        """
        credentials = self._build_credentials(creds)
        try:
            if not credentials.valid:
                credentials.refresh(GoogleAuthRequest())

            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            media = MediaFileUpload(file_path, mimetype=mime_type, resumable=False)
            response = (
                service.files()
                .create(body={"name": filename}, media_body=media, fields="id,webViewLink")
                .execute()
            )
        except (GoogleAuthError, HttpError, OSError) as e:
            raise UpstreamUnavailableError(f"Google Drive upload failed: {e}") from e

        refreshed = DriveCredentials(
            access_token=credentials.token,
            refresh_token=credentials.refresh_token or creds.refresh_token,
            expiry=ensure_aware(credentials.expiry),
        )
        return DriveUpload(
            file_id=response["id"],
            link=response.get("webViewLink"),
            credentials=refreshed,
        )


class CloudMirrorSink:
    """
    Mirrors file blobs to Google Drive and records the outcome.

    Args:
        client: Drive client (GoogleDriveClient or a compatible fake)
        storage: Blob storage used to resolve local paths
        session_factory: Creates a new DB session; background tasks run
            after the request session is closed
    """

    def __init__(
        self,
        client: GoogleDriveClient,
        storage: StorageBackend,
        session_factory: Callable[[], Session],
    ):
        self.client = client
        self.storage = storage
        self.session_factory = session_factory

    def mark_pending(self, db: Session, file_id: str) -> None:
        file_records.set_drive_sync_status(db, file_id, DriveSyncStatus.PENDING)

    async def mirror_file(self, file_id: str) -> DriveSyncStatus:
        """
        Upload one file to its owner's Drive; never raises.

        Returns:
            The status recorded on the file (synced or failed)
        """
        db = self.session_factory()
        try:
            record = file_records.find_by_id(db, file_id)
            if record is None:
                logger.warning(f"Drive mirror skipped, file no longer exists: file_id={file_id}")
                return DriveSyncStatus.FAILED

            owner = db.get(User, record.owner_id)
            if owner is None or not owner.drive_connected:
                return self._record_failure(db, file_id, "Google Drive not connected")

            try:
                upload = await self._upload(record, owner)
            except (UpstreamUnavailableError, StorageError) as e:
                logger.warning(f"Drive mirror failed: file_id={file_id}, error={e}")
                return self._record_failure(db, file_id, str(e))

            owner.drive_access_token = upload.credentials.access_token
            owner.drive_refresh_token = upload.credentials.refresh_token
            owner.drive_token_expiry = upload.credentials.expiry
            db.commit()

            file_records.set_drive_sync_status(
                db,
                file_id,
                DriveSyncStatus.SYNCED,
                drive_file_id=upload.file_id,
                drive_link=upload.link,
                synced_at=utcnow(),
            )
            logger.info(f"Drive mirror completed: file_id={file_id}, drive_file_id={upload.file_id}")
            return DriveSyncStatus.SYNCED

        except Exception as e:
            # Mirror failures must never surface to the triggering request
            logger.error(f"Drive mirror crashed: file_id={file_id}: {e}", exc_info=True)
            db.rollback()
            return self._record_failure(db, file_id, "Unexpected mirror error")

        finally:
            db.close()

    async def _upload(self, record: FileRecord, owner: User) -> DriveUpload:
        file_path = self.storage.get_file_path(record.blob_ref)
        creds = DriveCredentials(
            access_token=owner.drive_access_token,
            refresh_token=owner.drive_refresh_token,
            expiry=owner.drive_token_expiry,
        )
        return await asyncio.to_thread(
            self.client.upload, creds, file_path, record.file_name, record.mime_type
        )

    @staticmethod
    def _record_failure(db: Session, file_id: str, error: str) -> DriveSyncStatus:
        file_records.set_drive_sync_status(db, file_id, DriveSyncStatus.FAILED, error=error)
        return DriveSyncStatus.FAILED


def build_drive_mirror(
    client_id: str | None,
    client_secret: str | None,
    token_uri: str,
    storage: StorageBackend,
    session_factory: Callable[[], Session],
) -> CloudMirrorSink | None:
    """Create the mirror sink at startup, or None when Drive is not configured."""
    if not client_id or not client_secret:
        logger.info("Google Drive mirror disabled: GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET not set")
        return None
    return CloudMirrorSink(
        client=GoogleDriveClient(client_id, client_secret, token_uri),
        storage=storage,
        session_factory=session_factory,
    )
