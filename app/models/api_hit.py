from datetime import datetime

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class ApiHit(Base):
    """Per-user, per-endpoint API call counter used by the analytics endpoints."""

    __tablename__ = "api_hits"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    endpoint: Mapped[str] = mapped_column(String(500))
    hit_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_hit: Mapped[datetime] = mapped_column(server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "endpoint", name="uq_api_hits_user_endpoint"),
    )
