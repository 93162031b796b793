"""
Schemas for the current-user profile and Google Drive sync settings.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserProfileResponse(BaseModel):
    id: int
    email: str
    created_at: datetime
    drive_sync_enabled: bool
    drive_connected: bool

    model_config = ConfigDict(from_attributes=True)


class DriveSyncStatusResponse(BaseModel):
    """Drive mirror settings of the current user."""

    sync_enabled: bool
    """Whether new uploads are mirrored automatically."""

    is_connected: bool
    """Whether a Drive refresh token is stored."""

    mirror_available: bool
    """Whether the server has a Drive OAuth client configured."""


class DriveSyncUpdateRequest(BaseModel):
    enabled: bool = Field(strict=True)


class DriveCredentialsRequest(BaseModel):
    refresh_token: str = Field(min_length=1)
    access_token: str | None = None
    expires_in: int | None = Field(None, gt=0, description="Access token lifetime in seconds")
