from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from app.utils.datetime import ensure_aware


class AnalyticsSummaryResponse(BaseModel):
    total_files: int
    total_storage: int
    total_downloads: int
    total_api_hits: int

    model_config = ConfigDict(from_attributes=True)


class FileUsageResponse(BaseModel):
    file_id: str
    file_name: str
    size: int
    download_count: int
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("uploaded_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return ensure_aware(v)


class EndpointUsageResponse(BaseModel):
    endpoint: str
    hit_count: int
    last_hit: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("last_hit")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        return ensure_aware(v)


class AnalyticsDetailResponse(BaseModel):
    files: list[FileUsageResponse]
    api_hits: list[EndpointUsageResponse]

    model_config = ConfigDict(from_attributes=True)
