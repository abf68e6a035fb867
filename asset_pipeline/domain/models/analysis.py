# Standard library imports
from dataclasses import dataclass
from typing import Any, Dict, Optional

DEFAULT_BRAND_CONFIDENCE = 0.8
DEFAULT_MODEL_CONFIDENCE = 0.8
DEFAULT_COLORWAY_CONFIDENCE = 0.7


@dataclass(frozen=True)
class FieldPrediction:
    """One recognised attribute and how sure the service was about it."""
    value: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "confidence": self.confidence}


@dataclass(frozen=True)
class AnalysisResult:
    """Normalized output of the recognition service."""
    brand: Optional[FieldPrediction] = None
    model: Optional[FieldPrediction] = None
    colorway: Optional[FieldPrediction] = None
    processed_image_url: Optional[str] = None

    def to_metadata(self) -> Dict[str, Any]:
        """Pair-form attributes as stored on the Asset (absent ones are None)."""
        return {
            "brand": self.brand.to_dict() if self.brand else None,
            "model": self.model.to_dict() if self.model else None,
            "colorway": self.colorway.to_dict() if self.colorway else None,
        }
