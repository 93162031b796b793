"""
File schemas.

This module defines request and response schemas for file upload, listing,
access-level changes, share links and the per-user shared_with list.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.file_record import AccessLevel, DriveSyncStatus
from app.utils.datetime import ensure_aware


class FileRecordResponse(BaseModel):
    """
    File metadata as returned to the owner or a user it is shared with.

    The share token itself is never included here; owners fetch the link
    through the share-link endpoint.
    """

    id: str
    file_name: str
    size: int
    mime_type: str
    uploaded_at: datetime
    download_count: int
    owner_id: int
    folder_id: int | None
    access_level: AccessLevel
    share_token_expires: datetime | None
    shared_with: list[int] = Field(validation_alias="shared_with_ids")
    drive_sync_status: DriveSyncStatus
    drive_link: str | None
    drive_synced_at: datetime | None
    drive_sync_error: str | None

    model_config = ConfigDict(from_attributes=True)

    # SQLite回傳的datetime不帶時區，統一轉成UTC aware再輸出
    @field_validator("uploaded_at", "share_token_expires", "drive_synced_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v)


class FileListResponseData(BaseModel):
    files: list[FileRecordResponse]
    total: int


class AccessLevelUpdateRequest(BaseModel):
    access_level: str = Field(
        ...,
        description="One of only_me, anyone_with_link, timed_access",
    )
    expiry_hours: float | None = Field(
        None,
        description="Required for timed_access; hours until the link stops working",
    )


class ShareLinkResponse(BaseModel):
    file_id: str
    access_level: AccessLevel
    share_link: str
    expires_at: datetime | None

    @field_validator("expires_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_aware(v)


class ShareWithRequest(BaseModel):
    email: EmailStr


class DriveSyncResponse(BaseModel):
    file_id: str
    drive_sync_status: DriveSyncStatus
