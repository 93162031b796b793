"""
File lifecycle outside the access-control state machine: upload, listing,
deletion and the owner-managed shared_with list.
"""
import uuid
from pathlib import PurePath
from typing import AsyncIterator

from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import ForbiddenError, InvalidArgumentError, NotFoundError
from app.logging_config import setup_logging
from app.models.file_record import AccessLevel, DriveSyncStatus, FileRecord
from app.models.user import User
from app.services import file_records
from app.services.auth import get_user_by_email
from app.services.folders import get_owned_folder
from app.storage.base import StorageBackend
from app.storage.exceptions import BlobNotFoundError, StorageError, UnsupportedContentTypeError
from app.utils.validators import normalize_display_name

logger = setup_logging()

UPLOAD_CHUNK_SIZE = 64 * 1024  # 64KB


async def _iter_upload(upload: UploadFile) -> AsyncIterator[bytes]:
    while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
        yield chunk


async def store_upload(
    db: Session,
    storage: StorageBackend,
    owner: User,
    upload: UploadFile,
    folder_id: int | None = None,
    mirror_requested: bool = False,
) -> FileRecord:
    """
    Persist an uploaded file and create its record in ``only_me``.

    Args:
        mirror_requested: Mark the record ``pending`` for the Drive mirror

    Raises:
        UnsupportedContentTypeError: MIME type not on the allow-list
        FileSizeExceededError: Upload exceeds MAX_UPLOAD_SIZE_MB
        InvalidArgumentError: Missing or invalid filename
        NotFoundError: folder_id is not one of the owner's folders
    """
    content_type = upload.content_type
    if content_type not in settings.ALLOWED_UPLOAD_CONTENT_TYPES:
        raise UnsupportedContentTypeError(content_type)

    try:
        file_name = normalize_display_name(PurePath(upload.filename or "").name)
    except ValueError as e:
        raise InvalidArgumentError(f"Invalid filename: {e}") from e

    if folder_id is not None:
        get_owned_folder(db, folder_id, owner.id)

    file_id = uuid.uuid4().hex
    blob = await storage.save_file(
        blob_id=file_id,
        file_stream=_iter_upload(upload),
        content_type=content_type,
        extension=PurePath(file_name).suffix,
    )

    record = FileRecord(
        id=file_id,
        file_name=file_name,
        blob_ref=blob.blob_ref,
        size=blob.size,
        mime_type=blob.content_type,
        owner_id=owner.id,
        folder_id=folder_id,
        access_level=AccessLevel.ONLY_ME.value,
        drive_sync_status=(
            DriveSyncStatus.PENDING.value if mirror_requested else DriveSyncStatus.NOT_SYNCED.value
        ),
    )
    try:
        db.add(record)
        db.commit()
        db.refresh(record)
    except SQLAlchemyError:
        db.rollback()
        # 資料庫寫入失敗時，釋放已經寫入的blob，避免留下孤兒檔案
        try:
            await storage.delete_file(blob.blob_ref)
        except StorageError as e:
            logger.error(f"Failed to release blob {blob.blob_ref} after failed upload: {e}")
        logger.error(f"Upload aborted, record not saved: file_id={file_id}", exc_info=True)
        raise

    logger.info(
        f"File uploaded: file_id={record.id}, owner_id={owner.id}, size={record.size}, "
        f"mirror={'pending' if mirror_requested else 'off'}"
    )
    return record


def get_owned_file(db: Session, file_id: str, owner_id: int) -> FileRecord:
    record = file_records.find_by_id(db, file_id)
    if record is None:
        raise NotFoundError("File not found")
    if not record.is_owned_by(owner_id):
        raise ForbiddenError("Only the file owner can perform this action")
    return record


def get_visible_file(db: Session, file_id: str, user_id: int) -> FileRecord:
    record = file_records.find_by_id(db, file_id)
    if record is None or not record.can_access_directly(user_id):
        raise NotFoundError("File not found")
    return record


async def delete_file(db: Session, storage: StorageBackend, file_id: str, owner_id: int) -> None:
    record = get_owned_file(db, file_id, owner_id)
    blob_ref = record.blob_ref
    db.delete(record)
    db.commit()

    try:
        await storage.delete_file(blob_ref)
    except BlobNotFoundError:
        logger.warning(f"Blob already missing for deleted file {file_id}: {blob_ref}")
    except StorageError as e:
        logger.error(f"Failed to release blob {blob_ref}: {e}")

    logger.info(f"File deleted: file_id={file_id}, owner_id={owner_id}")


def share_with_user(db: Session, file_id: str, owner_id: int, email: str) -> FileRecord:
    """
    Grant another registered user standing access to a file.

    Does not change the access level or share token.
    """
    record = get_owned_file(db, file_id, owner_id)
    target = get_user_by_email(db, email)
    if target is None:
        raise NotFoundError("User not found")
    if target.id == owner_id:
        raise InvalidArgumentError("You already own this file")

    if target.id not in record.shared_with_ids:
        record.shared_with.append(target)
        db.commit()
        logger.info(f"File shared with user: file_id={file_id}, user_id={target.id}")

    return file_records.find_by_id(db, file_id)


def unshare_with_user(db: Session, file_id: str, owner_id: int, user_id: int) -> FileRecord:
    record = get_owned_file(db, file_id, owner_id)
    remaining = [user for user in record.shared_with if user.id != user_id]
    if len(remaining) == len(record.shared_with):
        raise NotFoundError("User does not have access to this file")

    record.shared_with = remaining
    db.commit()
    logger.info(f"File unshared: file_id={file_id}, user_id={user_id}")
    return file_records.find_by_id(db, file_id)
