from app.models.api_hit import ApiHit
from app.models.file_record import AccessLevel, DriveSyncStatus, FileRecord, file_shares
from app.models.folder import Folder
from app.models.user import User

__all__ = ["AccessLevel", "ApiHit", "DriveSyncStatus", "FileRecord", "Folder", "User", "file_shares"]
