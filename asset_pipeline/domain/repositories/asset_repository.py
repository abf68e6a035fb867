from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from ..models.asset import Asset, ImageRef


class AssetRepository(ABC):
    """Repository interface - defines contract for asset record access"""

    @abstractmethod
    async def find_by_id(self, asset_id: str) -> Optional[Asset]:
        """Find asset by ID"""
        pass

    @abstractmethod
    async def create(self, asset: Asset) -> Asset:
        """Insert a new asset and return it with its ID set"""
        pass

    @abstractmethod
    async def set_processing_job(self, asset_id: str, job_id: str) -> bool:
        """Record which job is processing the asset"""
        pass

    @abstractmethod
    async def mark_active(
        self,
        asset_id: str,
        analysis_result: Dict[str, Any],
        processed_image: Optional[ImageRef] = None,
    ) -> bool:
        """Store analysis output and move the asset to active. False if nothing was updated."""
        pass

    @abstractmethod
    async def mark_failed(self, asset_id: str, error: str) -> bool:
        """Attach the error and move the asset to failed. False if nothing was updated."""
        pass
