# Standard library imports
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional


class AssetStatus(str, Enum):
    """Lifecycle status of an Asset record."""
    DRAFT = "draft"
    PROCESSING = "processing"
    PARTIAL = "partial"
    ACTIVE = "active"
    FAILED = "failed"
    ARCHIVED = "archived"


# Statuses owned by other parts of the system; pipeline writes must never replace them.
PROTECTED_STATUSES: FrozenSet[AssetStatus] = frozenset({AssetStatus.PARTIAL, AssetStatus.ARCHIVED})


class AssetCategory(str, Enum):
    SNEAKER = "sneaker"
    LEGO = "lego"
    CAMERA = "camera"
    OTHER = "other"


@dataclass
class ImageRef:
    """A fetchable image location plus the moment it was produced."""
    url: str
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "created_at": self.created_at}


@dataclass
class AssetImages:
    original: ImageRef
    processed: Optional[ImageRef] = None


@dataclass
class Asset:
    """
    Pure domain model for Asset entity - no external dependencies.

    Created by ingress in PROCESSING state with processing_job_id set; the
    worker pool moves it to ACTIVE or FAILED and nothing else.
    """
    id: Optional[str]
    owner_id: str
    category: AssetCategory
    images: AssetImages
    status: AssetStatus = AssetStatus.DRAFT
    analysis_result: Optional[Dict[str, Any]] = None
    processing_job_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        """Business validations"""
        if not self.owner_id:
            raise ValueError("Owner ID is required")
        if not self.images or not self.images.original or not self.images.original.url:
            raise ValueError("Original image URL is required")
        if not isinstance(self.status, AssetStatus):
            self.status = AssetStatus(self.status)
        if not isinstance(self.category, AssetCategory):
            self.category = AssetCategory(self.category)

    def is_owned_by(self, owner_id: str) -> bool:
        return str(self.owner_id) == str(owner_id)
