"""
Usage analytics: per-user API hit counters and storage/download totals.
"""
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.models.api_hit import ApiHit
from app.models.file_record import FileRecord
from app.utils.datetime import utcnow


@dataclass
class AnalyticsSummary:
    total_files: int
    total_storage: int
    total_downloads: int
    total_api_hits: int


@dataclass
class FileUsage:
    file_id: str
    file_name: str
    size: int
    download_count: int
    uploaded_at: datetime


@dataclass
class EndpointUsage:
    endpoint: str
    hit_count: int
    last_hit: datetime


@dataclass
class AnalyticsDetail:
    files: list[FileUsage] = field(default_factory=list)
    api_hits: list[EndpointUsage] = field(default_factory=list)


def record_api_hit(db: Session, user_id: int, endpoint: str) -> None:
    """Increment the user's counter for ``endpoint``, creating it on first use."""
    now = utcnow()
    result = db.execute(
        update(ApiHit)
        .where(ApiHit.user_id == user_id, ApiHit.endpoint == endpoint)
        .values(hit_count=ApiHit.hit_count + 1, last_hit=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.add(ApiHit(user_id=user_id, endpoint=endpoint, hit_count=1, last_hit=now))
    db.commit()


def get_summary(db: Session, user_id: int) -> AnalyticsSummary:
    files_row = db.execute(
        select(
            func.count(FileRecord.id),
            func.coalesce(func.sum(FileRecord.size), 0),
            func.coalesce(func.sum(FileRecord.download_count), 0),
        ).where(FileRecord.owner_id == user_id)
    ).one()
    total_hits = db.execute(
        select(func.coalesce(func.sum(ApiHit.hit_count), 0)).where(ApiHit.user_id == user_id)
    ).scalar_one()

    return AnalyticsSummary(
        total_files=int(files_row[0]),
        total_storage=int(files_row[1]),
        total_downloads=int(files_row[2]),
        total_api_hits=int(total_hits),
    )


def get_detail(db: Session, user_id: int) -> AnalyticsDetail:
    files = db.execute(
        select(FileRecord)
        .where(FileRecord.owner_id == user_id)
        .order_by(FileRecord.uploaded_at.desc(), FileRecord.id)
    ).scalars().all()
    hits = db.execute(
        select(ApiHit).where(ApiHit.user_id == user_id).order_by(ApiHit.endpoint)
    ).scalars().all()

    return AnalyticsDetail(
        files=[
            FileUsage(
                file_id=f.id,
                file_name=f.file_name,
                size=f.size,
                download_count=f.download_count,
                uploaded_at=f.uploaded_at,
            )
            for f in files
        ],
        api_hits=[
            EndpointUsage(endpoint=h.endpoint, hit_count=h.hit_count, last_hit=h.last_hit)
            for h in hits
        ],
    )
