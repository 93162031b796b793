from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.file_record import FileRecord
    from app.models.folder import Folder


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now()
    )

    # Google Drive OAuth credentials used by the cloud mirror
    drive_access_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    drive_refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    drive_token_expiry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    drive_sync_enabled: Mapped[bool] = mapped_column(default=False)

    files: Mapped[list["FileRecord"]] = relationship(
        "FileRecord", back_populates="owner"
    )
    folders: Mapped[list["Folder"]] = relationship("Folder", back_populates="owner")

    @property
    def drive_connected(self) -> bool:
        return bool(self.drive_refresh_token)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
