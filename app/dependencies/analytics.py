from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies.auth import get_current_user
from app.models.user import User
from app.services.analytics import record_api_hit


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def endpoint_key(request: Request) -> str:
    """
    Build the analytics key "METHOD /full/route/{template}".

    Depending on the FastAPI release, the matched route's path is either the
    full template or only the part below the included router's prefix. The
    prefix is recovered from the concrete request path, which always holds
    one segment per template segment (no path converter here spans a slash).
    """
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    path = request.url.path
    if template is None:
        return f"{request.method} {path}"

    template_segments = _segments(template)
    path_segments = _segments(path)
    prefix = path_segments[: max(len(path_segments) - len(template_segments), 0)]
    return f"{request.method} /" + "/".join(prefix + template_segments)


def track_api_hit(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> None:
    """
    Count an authenticated API call for the usage analytics.

    Attached at router level; keyed by method and route template so
    /files/abc/download and /files/def/download share one counter.
    """
    record_api_hit(db, current_user.id, endpoint_key(request))
