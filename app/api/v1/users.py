"""
Current-user endpoints.

Profile lookup and the Google Drive mirror settings. The Drive OAuth
consent flow happens client-side; the resulting refresh token is handed
to PUT /users/me/drive/credentials.
"""
from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies.analytics import track_api_hit
from app.dependencies.auth import get_current_user
from app.dependencies.services import get_drive_mirror
from app.logging_config import setup_logging
from app.models.user import User
from app.schemas.common import APIResponse
from app.schemas.users import (
    DriveCredentialsRequest,
    DriveSyncStatusResponse,
    DriveSyncUpdateRequest,
    UserProfileResponse,
)
from app.services.drive_mirror import CloudMirrorSink
from app.utils.datetime import utcnow

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(track_api_hit)])

logger = setup_logging()


def _drive_status(user: User, mirror: CloudMirrorSink | None) -> DriveSyncStatusResponse:
    return DriveSyncStatusResponse(
        sync_enabled=user.drive_sync_enabled,
        is_connected=user.drive_connected,
        mirror_available=mirror is not None,
    )


@router.get("/me", response_model=APIResponse[UserProfileResponse])
def get_profile(current_user: User = Depends(get_current_user)):
    return APIResponse(success=True, data=UserProfileResponse.model_validate(current_user))


@router.get("/me/drive", response_model=APIResponse[DriveSyncStatusResponse])
def get_drive_settings(
    current_user: User = Depends(get_current_user),
    mirror: CloudMirrorSink | None = Depends(get_drive_mirror),
):
    return APIResponse(success=True, data=_drive_status(current_user, mirror))


@router.patch("/me/drive", response_model=APIResponse[DriveSyncStatusResponse])
def update_drive_settings(
    request: DriveSyncUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    mirror: CloudMirrorSink | None = Depends(get_drive_mirror),
):
    """
    Turn automatic mirroring of new uploads on or off.

    Uploads are only mirrored while credentials are stored as well.
    Existing files are not mirrored retroactively (use POST
    /files/{id}/sync for those).
    """
    current_user.drive_sync_enabled = request.enabled
    db.commit()
    db.refresh(current_user)

    logger.info(f"Drive sync {'enabled' if request.enabled else 'disabled'}: user_id={current_user.id}")
    return APIResponse(success=True, data=_drive_status(current_user, mirror))


@router.put("/me/drive/credentials", response_model=APIResponse[DriveSyncStatusResponse])
def connect_drive(
    request: DriveCredentialsRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    mirror: CloudMirrorSink | None = Depends(get_drive_mirror),
):
    current_user.drive_refresh_token = request.refresh_token
    current_user.drive_access_token = request.access_token
    current_user.drive_token_expiry = (
        utcnow() + timedelta(seconds=request.expires_in)
        if request.access_token and request.expires_in
        else None
    )
    db.commit()
    db.refresh(current_user)

    logger.info(f"Google Drive connected: user_id={current_user.id}")
    return APIResponse(success=True, data=_drive_status(current_user, mirror))


@router.delete("/me/drive/credentials", response_model=APIResponse[DriveSyncStatusResponse])
def disconnect_drive(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    mirror: CloudMirrorSink | None = Depends(get_drive_mirror),
):
    current_user.drive_refresh_token = None
    current_user.drive_access_token = None
    current_user.drive_token_expiry = None
    current_user.drive_sync_enabled = False
    db.commit()
    db.refresh(current_user)

    logger.info(f"Google Drive disconnected: user_id={current_user.id}")
    return APIResponse(success=True, data=_drive_status(current_user, mirror))
