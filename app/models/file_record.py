"""
File record database model.

This module defines the FileRecord model holding the metadata of an uploaded
file, its access-control state (access level and inline share token) and
the status of its optional Google Drive mirror.
"""
import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.utils.datetime import utcnow

if TYPE_CHECKING:
    from app.models.folder import Folder
    from app.models.user import User


class AccessLevel(str, enum.Enum):
    ONLY_ME = "only_me"
    ANYONE_WITH_LINK = "anyone_with_link"
    TIMED_ACCESS = "timed_access"


class DriveSyncStatus(str, enum.Enum):
    NOT_SYNCED = "not_synced"
    PENDING = "pending"
    SYNCED = "synced"
    FAILED = "failed"


# Standing access granted by the owner to other users, independent of the
# access level / share token mechanism.
file_shares = Table(
    "file_shares",
    Base.metadata,
    Column("file_id", String(32), ForeignKey("files.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


def _new_file_id() -> str:
    return uuid.uuid4().hex


class FileRecord(Base):
    """
    Uploaded file metadata.

    Attributes:
        id: Globally unique identifier (uuid4 hex), immutable
        file_name: Display name; duplicates are allowed
        blob_ref: Opaque locator returned by the storage backend
        size: File size in bytes
        mime_type: MIME type declared at upload
        uploaded_at: Upload timestamp
        download_count: Successful content reads, only ever incremented
        owner_id: Owning user, immutable
        folder_id: Optional containing folder
        access_level: only_me | anyone_with_link | timed_access
        share_token: Hex share token, unique when not null
        share_token_expires: Expiry instant, only set for timed_access
        version: Compare-and-swap counter bumped on every access-state write
        drive_sync_status: not_synced | pending | synced | failed
        drive_file_id / drive_link: Drive identifiers once synced
    """

    __tablename__ = "files"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_file_id)
    file_name: Mapped[str] = mapped_column(String(255), index=True)
    blob_ref: Mapped[str] = mapped_column(String(500))
    size: Mapped[int] = mapped_column(BigInteger)
    mime_type: Mapped[str] = mapped_column(String(255))
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    download_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    folder_id: Mapped[int | None] = mapped_column(ForeignKey("folders.id"), nullable=True)

    access_level: Mapped[str] = mapped_column(
        String(20), default=AccessLevel.ONLY_ME.value, server_default=AccessLevel.ONLY_ME.value
    )
    share_token: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)
    share_token_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, default=1, server_default="1")

    drive_sync_status: Mapped[str] = mapped_column(
        String(20),
        default=DriveSyncStatus.NOT_SYNCED.value,
        server_default=DriveSyncStatus.NOT_SYNCED.value,
    )
    drive_file_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    drive_link: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    drive_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    drive_sync_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    owner: Mapped["User"] = relationship("User", back_populates="files")
    folder: Mapped["Folder | None"] = relationship("Folder", back_populates="files")
    shared_with: Mapped[list["User"]] = relationship("User", secondary=file_shares)

    __table_args__ = (
        Index("idx_files_owner_name", "owner_id", "file_name"),
    )

    @property
    def shared_with_ids(self) -> list[int]:
        return [user.id for user in self.shared_with]

    def is_owned_by(self, user_id: int) -> bool:
        return self.owner_id == user_id

    def can_access_directly(self, user_id: int) -> bool:
        """Owner or standing share; deliberately ignores access_level."""
        return self.is_owned_by(user_id) or user_id in self.shared_with_ids

    def __repr__(self) -> str:
        return (
            f"<FileRecord(id={self.id}, file_name={self.file_name}, "
            f"access_level={self.access_level})>"
        )
