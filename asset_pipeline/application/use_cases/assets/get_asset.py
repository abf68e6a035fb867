# Standard library imports
from typing import Optional

# Local application imports
from ....domain.repositories.asset_repository import AssetRepository
from ...dto.asset_dto import AssetResponse


class GetAssetUseCase:
    """Use case for reading one asset owned by the caller"""

    def __init__(self, asset_repository: AssetRepository) -> None:
        self.asset_repository = asset_repository

    async def execute(self, asset_id: str, owner_id: str) -> Optional[AssetResponse]:
        """
        Get an asset by ID, scoped to its owner

        Returns:
            AssetResponse, or None if the asset does not exist or belongs to someone else
        """
        asset = await self.asset_repository.find_by_id(asset_id)
        if asset is None or not asset.is_owned_by(owner_id):
            return None

        return AssetResponse(
            id=asset.id,
            owner_id=asset.owner_id,
            category=asset.category.value,
            status=asset.status.value,
            original_image_url=asset.images.original.url,
            processed_image_url=asset.images.processed.url if asset.images.processed else None,
            analysis_result=asset.analysis_result,
            processing_job_id=asset.processing_job_id,
        )
