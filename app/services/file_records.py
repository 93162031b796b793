"""
File record repository.

Lookup helpers for FileRecord plus the atomic write primitives the access
control engine and download gateway rely on:

- atomic_update(): compare-and-swap on the ``version`` column. The mutation
  is computed from a fresh snapshot and written with
  ``UPDATE ... WHERE id = :id AND version = :seen``; if another request won
  the race the snapshot is reloaded and the mutation re-evaluated.
- increment_download_count(): in-place ``download_count + 1``.
- set_drive_sync_status(): mirror status columns only; never touches the
  access-control columns.

None of these hold application-level locks.
"""
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session, selectinload

from app.exceptions import ConflictError, NotFoundError
from app.logging_config import setup_logging
from app.models.file_record import DriveSyncStatus, FileRecord, file_shares

logger = setup_logging()

CAS_MAX_ATTEMPTS = 5

# A mutation receives the current snapshot and returns the column values to
# write, or None when no write is needed. It may raise to abort.
Mutation = Callable[[FileRecord], dict | None]


def find_by_id(db: Session, file_id: str) -> FileRecord | None:
    return db.execute(
        select(FileRecord)
        .where(FileRecord.id == file_id)
        .options(selectinload(FileRecord.shared_with))
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def _visible_to(user_id: int):
    """SQL filter: records the user owns or that are shared with them."""
    shared_ids = select(file_shares.c.file_id).where(file_shares.c.user_id == user_id)
    return or_(FileRecord.owner_id == user_id, FileRecord.id.in_(shared_ids))


def find_by_name_for_user(db: Session, file_name: str, user_id: int) -> FileRecord | None:
    """
    Find a file by display name among records the user owns or can see.

    Names are not unique; the most recently uploaded match wins.
    """
    return db.execute(
        select(FileRecord)
        .where(FileRecord.file_name == file_name, _visible_to(user_id))
        .options(selectinload(FileRecord.shared_with))
        .order_by(FileRecord.uploaded_at.desc(), FileRecord.id)
        .limit(1)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def find_by_share_token(db: Session, share_token: str) -> FileRecord | None:
    return db.execute(
        select(FileRecord)
        .where(FileRecord.share_token == share_token)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def list_visible_to(db: Session, user_id: int) -> list[FileRecord]:
    return list(
        db.execute(
            select(FileRecord)
            .where(_visible_to(user_id))
            .options(selectinload(FileRecord.shared_with))
            .order_by(FileRecord.uploaded_at.desc(), FileRecord.id)
        ).scalars().all()
    )


def list_in_folder(db: Session, folder_id: int) -> list[FileRecord]:
    return list(
        db.execute(
            select(FileRecord)
            .where(FileRecord.folder_id == folder_id)
            .order_by(FileRecord.uploaded_at.desc(), FileRecord.id)
        ).scalars().all()
    )


def atomic_update(
    db: Session,
    file_id: str,
    mutation: Mutation,
    max_attempts: int = CAS_MAX_ATTEMPTS,
) -> FileRecord:
    """
    Apply ``mutation`` to a record as a single compare-and-swap write.

    Args:
        db: Database session
        file_id: Record identifier
        mutation: Callable computing the new column values from a snapshot
        max_attempts: Reload/retry budget when the version moved underneath

    Returns:
        The record as persisted after the write (or unchanged snapshot when
        the mutation returned None)

    Raises:
        NotFoundError: If the record does not exist (or vanished mid-retry)
        ConflictError: If every attempt lost the race
        Any exception raised by ``mutation``; nothing is written then.
    """
    for attempt in range(1, max_attempts + 1):
        record = find_by_id(db, file_id)
        if record is None:
            raise NotFoundError("File not found")

        changes = mutation(record)
        if changes is None:
            return record

        seen_version = record.version
        result = db.execute(
            update(FileRecord)
            .where(FileRecord.id == file_id, FileRecord.version == seen_version)
            .values(**changes, version=FileRecord.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            db.commit()
            updated = find_by_id(db, file_id)
            if updated is None:
                raise NotFoundError("File not found")
            return updated

        logger.warning(
            f"Concurrent update on file {file_id} (version {seen_version}), "
            f"retrying ({attempt}/{max_attempts})"
        )

    raise ConflictError(f"File {file_id} is being modified concurrently, please retry")


def increment_download_count(db: Session, file_id: str) -> None:
    result = db.execute(
        update(FileRecord)
        .where(FileRecord.id == file_id)
        .values(download_count=FileRecord.download_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise NotFoundError("File not found")
    db.commit()


def set_drive_sync_status(
    db: Session,
    file_id: str,
    status: DriveSyncStatus,
    *,
    drive_file_id: str | None = None,
    drive_link: str | None = None,
    synced_at: datetime | None = None,
    error: str | None = None,
) -> None:
    values: dict = {"drive_sync_status": status.value, "drive_sync_error": error}
    if status == DriveSyncStatus.SYNCED:
        values.update(
            drive_file_id=drive_file_id,
            drive_link=drive_link,
            drive_synced_at=synced_at,
        )
    db.execute(
        update(FileRecord)
        .where(FileRecord.id == file_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    db.commit()
