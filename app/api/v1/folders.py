from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies.analytics import track_api_hit
from app.dependencies.auth import get_current_user
from app.dependencies.storage import get_storage
from app.models.user import User
from app.schemas.common import APIResponse
from app.schemas.files import FileListResponseData, FileRecordResponse
from app.schemas.folders import (
    FolderCreateRequest,
    FolderDeleteResponse,
    FolderRenameRequest,
    FolderResponse,
)
from app.services import folders as folder_service
from app.storage.base import StorageBackend

router = APIRouter(prefix="/folders", tags=["folders"], dependencies=[Depends(track_api_hit)])


@router.post(
    "",
    response_model=APIResponse[FolderResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_folder(
    request: FolderCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    folder = folder_service.create_folder(db, current_user.id, request.name)
    return APIResponse(success=True, data=FolderResponse.model_validate(folder))


@router.get("", response_model=APIResponse[list[FolderResponse]])
def list_folders(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    folders = folder_service.list_folders(db, current_user.id)
    return APIResponse(success=True, data=[FolderResponse.model_validate(f) for f in folders])


@router.patch("/{folder_id}", response_model=APIResponse[FolderResponse])
def rename_folder(
    folder_id: int,
    request: FolderRenameRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    folder = folder_service.rename_folder(db, folder_id, current_user.id, request.name)
    return APIResponse(success=True, data=FolderResponse.model_validate(folder))


@router.delete("/{folder_id}", response_model=APIResponse[FolderDeleteResponse])
async def delete_folder(
    folder_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
):
    """Delete a folder and every file in it (blobs included)."""
    files_deleted = await folder_service.delete_folder(db, storage, folder_id, current_user.id)
    return APIResponse(
        success=True,
        data=FolderDeleteResponse(id=folder_id, files_deleted=files_deleted),
    )


@router.get("/{folder_id}/files", response_model=APIResponse[FileListResponseData])
def list_folder_files(
    folder_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    records = folder_service.list_folder_files(db, folder_id, current_user.id)
    return APIResponse(
        success=True,
        data=FileListResponseData(
            files=[FileRecordResponse.model_validate(r) for r in records],
            total=len(records),
        ),
    )
