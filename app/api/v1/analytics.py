from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies.analytics import track_api_hit
from app.dependencies.auth import get_current_user
from app.models.user import User
from app.schemas.analytics import AnalyticsDetailResponse, AnalyticsSummaryResponse
from app.schemas.common import APIResponse
from app.services import analytics as analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"], dependencies=[Depends(track_api_hit)])


@router.get("/summary", response_model=APIResponse[AnalyticsSummaryResponse])
def get_summary(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Totals for the caller: files, bytes stored, downloads and API hits."""
    summary = analytics_service.get_summary(db, current_user.id)
    return APIResponse(success=True, data=AnalyticsSummaryResponse.model_validate(summary))


@router.get("/detailed", response_model=APIResponse[AnalyticsDetailResponse])
def get_detailed(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Per-file download counts and per-endpoint API hits for the caller."""
    detail = analytics_service.get_detail(db, current_user.id)
    return APIResponse(success=True, data=AnalyticsDetailResponse.model_validate(detail))
