from typing import Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

from ...domain.models.asset import AssetCategory


class AnalyzeAssetRequest(BaseModel):
    """DTO for submitting an image for queued analysis"""
    image_url: str
    category: AssetCategory = AssetCategory.OTHER

    @field_validator("image_url")
    @classmethod
    def _require_https(cls, value: str) -> str:
        parsed = urlparse(value.strip())
        if parsed.scheme != "https" or not parsed.netloc:
            raise ValueError("image_url must be an https URL")
        return value.strip()


class AnalyzeAssetResponse(BaseModel):
    """DTO for the enqueue confirmation"""
    asset_id: str
    job_id: str
    status: str = "processing"


class QueueStatusResponse(BaseModel):
    waiting: int
    active: int
    completed: int
    failed: int
    delayed: int
    paused: int


class AssetResponse(BaseModel):
    """DTO for asset response"""
    id: str
    owner_id: str
    category: str
    status: str
    original_image_url: str
    processed_image_url: Optional[str] = None
    analysis_result: Optional[Dict[str, Any]] = None
    processing_job_id: Optional[str] = None
