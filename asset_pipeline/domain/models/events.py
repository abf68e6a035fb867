"""Completion events pushed to the owner's live connections."""

# Standard library imports
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

# Local application imports
from .analysis import AnalysisResult

ASSET_PROCESSED_EVENT = "asset_processed"
DEFAULT_FAILURE_MESSAGE = "Processing failed"

# Sent in place of a missing brand/model so clients can always read .value
_EMPTY_PREDICTION: Dict[str, Any] = {"value": "", "confidence": 0}


@dataclass(frozen=True)
class SuccessEvent:
    asset_id: str
    analysis_result: AnalysisResult
    timestamp: str
    processed_image_url: Optional[str] = None
    status: str = "active"

    def to_payload(self) -> Dict[str, Any]:
        metadata = self.analysis_result.to_metadata()
        analysis: Dict[str, Any] = {
            "brand": metadata["brand"] or dict(_EMPTY_PREDICTION),
            "model": metadata["model"] or dict(_EMPTY_PREDICTION),
        }
        if metadata["colorway"]:
            analysis["colorway"] = metadata["colorway"]

        payload: Dict[str, Any] = {
            "event": ASSET_PROCESSED_EVENT,
            "assetId": str(self.asset_id),
            "status": self.status,
            "analysisResult": analysis,
            "timestamp": self.timestamp,
        }
        if self.processed_image_url:
            payload["processedImageUrl"] = self.processed_image_url
        return payload


@dataclass(frozen=True)
class FailureEvent:
    asset_id: str
    timestamp: str
    error: Optional[str] = None
    status: str = "failed"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "event": ASSET_PROCESSED_EVENT,
            "assetId": str(self.asset_id),
            "status": self.status,
            "error": self.error or DEFAULT_FAILURE_MESSAGE,
            "timestamp": self.timestamp,
        }


CompletionEvent = Union[SuccessEvent, FailureEvent]
