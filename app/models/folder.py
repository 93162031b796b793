from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.file_record import FileRecord
    from app.models.user import User


class Folder(Base):
    """Flat, owner-scoped grouping of files. Folders never reference files."""

    __tablename__ = "folders"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    owner: Mapped["User"] = relationship("User", back_populates="folders")
    files: Mapped[list["FileRecord"]] = relationship("FileRecord", back_populates="folder")

    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_folders_owner_name"),
    )

    def __repr__(self) -> str:
        return f"<Folder(id={self.id}, name={self.name}, owner_id={self.owner_id})>"
