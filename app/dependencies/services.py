"""
Dependencies wiring the access-control core into endpoints.

The Drive mirror is built once during application startup and stored on
app.state; endpoints receive it (or None when Drive is not configured)
through get_drive_mirror.
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies.storage import get_storage
from app.services.access_control import AccessControlEngine
from app.services.downloads import DownloadGateway
from app.services.drive_mirror import CloudMirrorSink
from app.storage.base import StorageBackend


def get_access_engine(db: Session = Depends(get_db)) -> AccessControlEngine:
    return AccessControlEngine(db)


def get_download_gateway(
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
) -> DownloadGateway:
    return DownloadGateway(db, storage)


def get_drive_mirror(request: Request) -> CloudMirrorSink | None:
    return getattr(request.app.state, "drive_mirror", None)
