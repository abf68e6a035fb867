# Standard library imports
import logging

# External package imports
from fastapi import APIRouter, Depends, HTTPException, status

# Local application imports
from ...application.dto.asset_dto import (
    AnalyzeAssetRequest,
    AnalyzeAssetResponse,
    AssetResponse,
    QueueStatusResponse,
)
from ...application.queue.job_queue import JobQueue
from ...application.use_cases.assets import GetAssetUseCase, SubmitAssetForAnalysisUseCase
from ...di.container import DIContainer
from ...domain.exceptions import MissingFieldError
from .dependencies import get_container, get_current_owner_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["assets"])


@router.post(
    "/analyze-queue",
    response_model=AnalyzeAssetResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def analyze_asset_queued(
    request: AnalyzeAssetRequest,
    owner_id: str = Depends(get_current_owner_id),
    container: DIContainer = Depends(get_container),
) -> AnalyzeAssetResponse:
    """
    Create an asset and queue it for background analysis.

    The result arrives later as an asset_processed event on the owner's
    notification connections.
    """
    use_case = container.get(SubmitAssetForAnalysisUseCase)
    try:
        return await use_case.execute(request, owner_id)
    except MissingFieldError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.user_message)
    except Exception as e:
        logger.error(f"Error queueing asset for analysis: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to queue asset for processing"
        )


@router.get("/queue-status", response_model=QueueStatusResponse)
async def get_queue_status(
    owner_id: str = Depends(get_current_owner_id),
    container: DIContainer = Depends(get_container),
) -> QueueStatusResponse:
    """Counts of jobs per state in the processing queue"""
    try:
        counts = await container.get(JobQueue).get_counts()
    except Exception as e:
        logger.error(f"Error reading queue counts: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read queue status"
        )
    return QueueStatusResponse(**counts.to_dict())


@router.get("/{asset_id}", response_model=AssetResponse)
async def get_asset(
    asset_id: str,
    owner_id: str = Depends(get_current_owner_id),
    container: DIContainer = Depends(get_container),
) -> AssetResponse:
    asset = await container.get(GetAssetUseCase).execute(asset_id, owner_id)
    if asset is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")
    return asset
