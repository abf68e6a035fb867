# Standard library imports
import logging

# Local application imports
from ....domain.models.asset import Asset, AssetImages, AssetStatus, ImageRef
from ....domain.repositories.asset_repository import AssetRepository
from ....utils.datetime_utils import now_iso, utc_now
from ...dto.asset_dto import AnalyzeAssetRequest, AnalyzeAssetResponse
from ...queue.job_queue import JobQueue

logger = logging.getLogger(__name__)


class SubmitAssetForAnalysisUseCase:
    """Use case for creating an asset and queueing it for analysis"""

    def __init__(self, asset_repository: AssetRepository, job_queue: JobQueue) -> None:
        self.asset_repository = asset_repository
        self.job_queue = job_queue

    async def execute(self, request: AnalyzeAssetRequest, owner_id: str) -> AnalyzeAssetResponse:
        """
        Create a processing asset and enqueue exactly one job for it

        Args:
            request: Image URL and category
            owner_id: Authenticated identity submitting the asset

        Returns:
            AnalyzeAssetResponse with the asset and job IDs

        Raises:
            MissingFieldError: If the job payload is incomplete (asset is marked failed)
            RuntimeError: If the asset cannot be stored or the job cannot be enqueued
        """
        asset = await self.asset_repository.create(
            Asset(
                id=None,
                owner_id=owner_id,
                category=request.category,
                status=AssetStatus.PROCESSING,
                images=AssetImages(original=ImageRef(url=request.image_url, created_at=utc_now())),
            )
        )

        try:
            job_id = await self.job_queue.enqueue({
                "assetId": asset.id,
                "ownerId": owner_id,
                "sourceUrl": request.image_url,
                "category": asset.category.value,
                "submittedAt": now_iso(),
            })
        except Exception as e:
            logger.error(f"Failed to enqueue asset {asset.id}: {e}", exc_info=True)
            # The asset must not stay in processing with no job behind it
            await self.asset_repository.mark_failed(asset.id, f"Failed to queue for processing: {e}")
            raise

        await self.asset_repository.set_processing_job(asset.id, job_id)
        logger.info(f"Asset {asset.id} submitted for analysis as job {job_id}")
        return AnalyzeAssetResponse(asset_id=asset.id, job_id=job_id, status=AssetStatus.PROCESSING.value)
