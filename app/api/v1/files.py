"""
File API endpoints.

Upload, listing, deletion and the three download paths (by id, by name,
and the public share link in app.api.v1.share), plus the owner-only
sharing controls: access level, share link and the shared_with list.

Authorization decisions are made by AccessControlEngine; domain errors
propagate to the exception handlers registered in app.main.
"""
from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    Request,
    UploadFile,
    status,
)
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.dependencies.analytics import track_api_hit
from app.dependencies.auth import get_current_user
from app.dependencies.services import get_access_engine, get_download_gateway, get_drive_mirror
from app.dependencies.storage import get_storage
from app.exceptions import InvalidArgumentError, UpstreamUnavailableError
from app.logging_config import setup_logging
from app.models.file_record import DriveSyncStatus
from app.models.user import User
from app.schemas.common import APIResponse, MessageData
from app.schemas.files import (
    AccessLevelUpdateRequest,
    DriveSyncResponse,
    FileListResponseData,
    FileRecordResponse,
    ShareLinkResponse,
    ShareWithRequest,
)
from app.services import file_records
from app.services import files as file_service
from app.services.access_control import AccessControlEngine
from app.services.downloads import DownloadGateway, DownloadHandle
from app.services.drive_mirror import CloudMirrorSink
from app.storage.base import StorageBackend

router = APIRouter(prefix="/files", tags=["files"], dependencies=[Depends(track_api_hit)])

logger = setup_logging()


def _stream(handle: DownloadHandle) -> StreamingResponse:
    return StreamingResponse(handle.stream, media_type=handle.media_type, headers=handle.headers)


def share_base_url(request: Request) -> str:
    # 未設定PUBLIC_BASE_URL時，使用請求本身的base URL(例如 http://localhost:8000/)
    return settings.PUBLIC_BASE_URL or str(request.base_url)


@router.post(
    "",
    response_model=APIResponse[FileRecordResponse],
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    folder_id: int | None = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    mirror: CloudMirrorSink | None = Depends(get_drive_mirror),
):
    """
    Upload a file (multipart/form-data).

    The new file is private (only_me). When the owner has Drive sync
    enabled and connected, the upload is mirrored in the background; the
    mirror outcome never affects this response.

    **Request:**
    - file: The file content (allowed MIME types and size limit from settings)
    - folder_id: Optional id of one of the caller's folders
    """
    mirror_requested = (
        mirror is not None and current_user.drive_sync_enabled and current_user.drive_connected
    )

    record = await file_service.store_upload(
        db,
        storage,
        current_user,
        file,
        folder_id=folder_id,
        mirror_requested=mirror_requested,
    )

    if mirror_requested:
        background_tasks.add_task(mirror.mirror_file, record.id)

    return APIResponse(success=True, data=FileRecordResponse.model_validate(record))


@router.get("", response_model=APIResponse[FileListResponseData])
def list_files(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List files the caller owns or that are shared with them, newest first."""
    records = file_records.list_visible_to(db, current_user.id)
    return APIResponse(
        success=True,
        data=FileListResponseData(
            files=[FileRecordResponse.model_validate(r) for r in records],
            total=len(records),
        ),
    )


@router.get("/by-name/{file_name}/download")
def download_file_by_name(
    file_name: str,
    current_user: User = Depends(get_current_user),
    engine: AccessControlEngine = Depends(get_access_engine),
    gateway: DownloadGateway = Depends(get_download_gateway),
):
    """
    Download the newest file with this name among those the caller owns
    or has been granted. Missing and not-permitted both answer 404.
    """
    record = engine.authorize_direct_access_by_name(file_name, current_user.id)
    return _stream(gateway.open(record))


@router.get("/{file_id}", response_model=APIResponse[FileRecordResponse])
def get_file(
    file_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    record = file_service.get_visible_file(db, file_id, current_user.id)
    return APIResponse(success=True, data=FileRecordResponse.model_validate(record))


@router.delete("/{file_id}", response_model=APIResponse[MessageData])
async def delete_file(
    file_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    await file_service.delete_file(db, storage, file_id, current_user.id)
    return APIResponse(success=True, data=MessageData(message="File deleted"))


@router.get("/{file_id}/download")
def download_file(
    file_id: str,
    current_user: User = Depends(get_current_user),
    engine: AccessControlEngine = Depends(get_access_engine),
    gateway: DownloadGateway = Depends(get_download_gateway),
):
    """
    Download a file as its owner or as a user it is shared with.

    The access level plays no part here; it only governs share links.
    """
    record = engine.authorize_direct_access_by_id(file_id, current_user.id)
    return _stream(gateway.open(record))


@router.patch("/{file_id}/access", response_model=APIResponse[FileRecordResponse])
def update_access_level(
    file_id: str,
    request: AccessLevelUpdateRequest,
    current_user: User = Depends(get_current_user),
    engine: AccessControlEngine = Depends(get_access_engine),
):
    """
    Change the access level of a file (owner only).

    **Request:**
    - access_level: only_me | anyone_with_link | timed_access
    - expiry_hours: Required (> 0) for timed_access

    Every grant of anyone_with_link or timed_access issues a new share
    token; previously handed out links stop working.
    """
    record = engine.set_access_level(
        file_id, current_user.id, request.access_level, request.expiry_hours
    )
    return APIResponse(success=True, data=FileRecordResponse.model_validate(record))


@router.get("/{file_id}/share-link", response_model=APIResponse[ShareLinkResponse])
def get_share_link(
    file_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    engine: AccessControlEngine = Depends(get_access_engine),
):
    link = engine.describe_share_link(file_id, current_user.id, share_base_url(request))
    return APIResponse(
        success=True,
        data=ShareLinkResponse(
            file_id=link.record.id,
            access_level=link.record.access_level,
            share_link=link.url,
            expires_at=link.record.share_token_expires,
        ),
    )


@router.post("/{file_id}/shared-with", response_model=APIResponse[FileRecordResponse])
def share_with_user(
    file_id: str,
    request: ShareWithRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    record = file_service.share_with_user(db, file_id, current_user.id, request.email)
    return APIResponse(success=True, data=FileRecordResponse.model_validate(record))


@router.delete(
    "/{file_id}/shared-with/{user_id}",
    response_model=APIResponse[FileRecordResponse],
)
def unshare_with_user(
    file_id: str,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    record = file_service.unshare_with_user(db, file_id, current_user.id, user_id)
    return APIResponse(success=True, data=FileRecordResponse.model_validate(record))


@router.post(
    "/{file_id}/sync",
    response_model=APIResponse[DriveSyncResponse],
    status_code=status.HTTP_202_ACCEPTED,
)
def sync_to_drive(
    file_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    mirror: CloudMirrorSink | None = Depends(get_drive_mirror),
):
    """Mirror one file to the owner's Google Drive in the background."""
    record = file_service.get_owned_file(db, file_id, current_user.id)

    if mirror is None:
        raise UpstreamUnavailableError("Google Drive mirror is not configured")
    if not current_user.drive_connected:
        raise InvalidArgumentError("Google Drive not connected")

    mirror.mark_pending(db, record.id)
    background_tasks.add_task(mirror.mirror_file, record.id)
    logger.info(f"Drive sync requested: file_id={record.id}, user_id={current_user.id}")

    return APIResponse(
        success=True,
        data=DriveSyncResponse(file_id=record.id, drive_sync_status=DriveSyncStatus.PENDING),
    )
