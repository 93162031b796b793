"""
Public share-link endpoint.

No authentication: the share token in the path is the credential. This
router is mounted without the analytics dependency since there is no
caller identity to count against.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.dependencies.services import get_access_engine, get_download_gateway
from app.services.access_control import AccessControlEngine
from app.services.downloads import DownloadGateway

router = APIRouter(prefix="/share", tags=["share"])


@router.get("/{share_token}")
def download_shared_file(
    share_token: str,
    engine: AccessControlEngine = Depends(get_access_engine),
    gateway: DownloadGateway = Depends(get_download_gateway),
):
    """
    Download a file through its share link.

    - 404: token unknown or already rotated
    - 403: file is private, or timed access has expired
      (``data.reason == "expired"``; the file is reverted to only_me)
    """
    record = engine.authorize_share_link_access(share_token)
    handle = gateway.open(record)
    return StreamingResponse(handle.stream, media_type=handle.media_type, headers=handle.headers)
