"""
Folder management.

Folders are flat and owner-scoped. Every lookup filters on the owner, so a
folder belonging to someone else is reported as not found.
"""
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import InvalidArgumentError, NotFoundError
from app.logging_config import setup_logging
from app.models.file_record import FileRecord, file_shares
from app.models.folder import Folder
from app.services import file_records
from app.storage.base import StorageBackend
from app.storage.exceptions import BlobNotFoundError, StorageError
from app.utils.validators import normalize_display_name

logger = setup_logging()


def _clean_name(name: str) -> str:
    try:
        return normalize_display_name(name)
    except ValueError as e:
        raise InvalidArgumentError(str(e)) from e


def get_owned_folder(db: Session, folder_id: int, owner_id: int) -> Folder:
    folder = db.execute(
        select(Folder).where(Folder.id == folder_id, Folder.owner_id == owner_id)
    ).scalar_one_or_none()
    if folder is None:
        raise NotFoundError("Folder not found")
    return folder


def create_folder(db: Session, owner_id: int, name: str) -> Folder:
    name = _clean_name(name)
    existing = db.execute(
        select(Folder).where(Folder.owner_id == owner_id, Folder.name == name)
    ).scalar_one_or_none()
    if existing:
        raise InvalidArgumentError("Folder already exists")

    folder = Folder(name=name, owner_id=owner_id)
    try:
        db.add(folder)
        db.commit()
        db.refresh(folder)
    except IntegrityError:
        db.rollback()
        raise InvalidArgumentError("Folder already exists")
    return folder


def list_folders(db: Session, owner_id: int) -> list[Folder]:
    return list(
        db.execute(
            select(Folder).where(Folder.owner_id == owner_id).order_by(Folder.created_at, Folder.id)
        ).scalars().all()
    )


def rename_folder(db: Session, folder_id: int, owner_id: int, name: str) -> Folder:
    folder = get_owned_folder(db, folder_id, owner_id)
    name = _clean_name(name)
    if name == folder.name:
        return folder

    clash = db.execute(
        select(Folder).where(Folder.owner_id == owner_id, Folder.name == name)
    ).scalar_one_or_none()
    if clash:
        raise InvalidArgumentError("Folder already exists")

    folder.name = name
    db.commit()
    db.refresh(folder)
    return folder


def list_folder_files(db: Session, folder_id: int, owner_id: int) -> list[FileRecord]:
    get_owned_folder(db, folder_id, owner_id)
    return file_records.list_in_folder(db, folder_id)


async def delete_folder(
    db: Session, storage: StorageBackend, folder_id: int, owner_id: int
) -> int:
    """
    Delete a folder together with the owner's files inside it.

    Blobs are released after the rows are gone; a blob that cannot be
    removed is logged and left behind rather than failing the request.

    Returns:
        Number of file records deleted
    """
    folder = get_owned_folder(db, folder_id, owner_id)
    contained = db.execute(
        select(FileRecord.id, FileRecord.blob_ref).where(
            FileRecord.folder_id == folder.id, FileRecord.owner_id == owner_id
        )
    ).all()

    if contained:
        file_ids = [row.id for row in contained]
        db.execute(delete(file_shares).where(file_shares.c.file_id.in_(file_ids)))
        db.execute(
            delete(FileRecord)
            .where(FileRecord.id.in_(file_ids))
            .execution_options(synchronize_session=False)
        )
    db.delete(folder)
    db.commit()

    for row in contained:
        try:
            await storage.delete_file(row.blob_ref)
        except BlobNotFoundError:
            logger.warning(f"Blob already missing while deleting folder {folder_id}: {row.blob_ref}")
        except StorageError as e:
            logger.error(f"Failed to release blob {row.blob_ref}: {e}")

    logger.info(f"Folder deleted: folder_id={folder_id}, files_deleted={len(contained)}")
    return len(contained)
