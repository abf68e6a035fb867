# Standard library imports
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

# Local application imports
from ...domain.models.asset import Asset, ImageRef
from ...domain.models.events import FailureEvent, SuccessEvent
from ...domain.models.job import Job
from ...domain.repositories.asset_repository import AssetRepository
from ...infrastructure.external.analysis_client import AnalysisClient
from ...infrastructure.notifications.event_broadcaster import EventBroadcaster
from ...utils.datetime_utils import now_iso

logger = logging.getLogger(__name__)

ASSET_NOT_FOUND = "Asset not found"
OWNERSHIP_MISMATCH = "Ownership mismatch"
ASSET_NOT_WRITABLE = "Asset not writable"


@dataclass
class ProcessingResult:
    """Outcome of one run, logged and stored as the job result."""
    success: bool
    asset_id: str
    duration_ms: int
    analysis_result: Optional[Dict[str, Any]] = None
    skipped: bool = False
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "success": self.success,
            "asset_id": self.asset_id,
            "duration_ms": self.duration_ms,
        }
        if self.analysis_result is not None:
            data["analysis_result"] = self.analysis_result
        if self.skipped:
            data["skipped"] = True
            data["reason"] = self.reason
        return data


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class AssetProcessor:
    """
    Runs one job: guard, analyze, persist, notify.

    Re-delivery of a job is safe because every run re-reads the Asset and
    skips when it is gone or has changed hands.
    """

    def __init__(
        self,
        asset_repository: AssetRepository,
        analysis_client: AnalysisClient,
        broadcaster: EventBroadcaster,
    ):
        self.asset_repository = asset_repository
        self.analysis_client = analysis_client
        self.broadcaster = broadcaster

    async def process(self, job: Job) -> ProcessingResult:
        """
        Process one claimed job.

        Args:
            job: Active job from the queue

        Returns:
            ProcessingResult (success, or a skipped no-op)

        Raises:
            ProcessingError: From the analysis client; the queue decides whether to retry
        """
        started = time.monotonic()
        logger.info(
            f"Processing job_id={job.job_id} asset_id={job.asset_id} attempt={job.attempt_number}"
        )

        asset = await self._load_guarded(job)
        if isinstance(asset, str):
            return self._skipped(job, asset, started)

        result = await self.analysis_client.analyze(job.payload.source_url, job.payload.category)

        processed_image = (
            ImageRef(url=result.processed_image_url) if result.processed_image_url else None
        )
        metadata = result.to_metadata()
        updated = await self.asset_repository.mark_active(job.asset_id, metadata, processed_image)
        if not updated:
            return self._skipped(job, ASSET_NOT_WRITABLE, started)

        await self.broadcaster.emit(
            job.owner_id,
            SuccessEvent(
                asset_id=job.asset_id,
                analysis_result=result,
                processed_image_url=result.processed_image_url,
                timestamp=now_iso(),
            ),
        )

        outcome = ProcessingResult(
            success=True,
            asset_id=job.asset_id,
            duration_ms=_elapsed_ms(started),
            analysis_result=metadata,
        )
        logger.info(
            f"Processed job_id={job.job_id} asset_id={job.asset_id} duration_ms={outcome.duration_ms}"
        )
        return outcome

    async def handle_terminal_failure(self, job: Job, message: str) -> ProcessingResult:
        """
        Record a job that will not be retried: mark the Asset failed and notify its owner.

        The same existence and ownership guards as process() apply.
        """
        started = time.monotonic()
        asset = await self._load_guarded(job)
        if isinstance(asset, str):
            return self._skipped(job, asset, started)

        updated = await self.asset_repository.mark_failed(job.asset_id, message)
        if not updated:
            return self._skipped(job, ASSET_NOT_WRITABLE, started)

        await self.broadcaster.emit(
            job.owner_id,
            FailureEvent(asset_id=job.asset_id, error=message, timestamp=now_iso()),
        )

        outcome = ProcessingResult(success=False, asset_id=job.asset_id, duration_ms=_elapsed_ms(started))
        logger.error(f"Asset marked failed asset_id={job.asset_id} job_id={job.job_id} error={message}")
        return outcome

    async def _load_guarded(self, job: Job):
        """Return the Asset, or the skip reason if it must not be touched."""
        asset: Optional[Asset] = await self.asset_repository.find_by_id(job.asset_id)
        if asset is None:
            return ASSET_NOT_FOUND
        if not asset.is_owned_by(job.owner_id):
            return OWNERSHIP_MISMATCH
        return asset

    def _skipped(self, job: Job, reason: str, started: float) -> ProcessingResult:
        logger.info(f"Skipped job_id={job.job_id} asset_id={job.asset_id} reason={reason}")
        return ProcessingResult(
            success=True,
            asset_id=job.asset_id,
            duration_ms=_elapsed_ms(started),
            skipped=True,
            reason=reason,
        )
