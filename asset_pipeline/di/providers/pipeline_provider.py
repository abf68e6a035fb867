from typing import TYPE_CHECKING
from ...core.config import get_settings
from ...domain.models.job import JobOptions
from ...domain.repositories.asset_repository import AssetRepository
from ...domain.repositories.job_repository import JobRepository
from ...application.queue.job_queue import JobQueue
from ...application.workers.asset_processor import AssetProcessor
from ...application.workers.worker_pool import WorkerPool
from ...infrastructure.external.analysis_client import AnalysisClient
from ...infrastructure.notifications.event_broadcaster import EventBroadcaster

if TYPE_CHECKING:
    from ..base_container import BaseContainer


class PipelineProvider:
    """Registers the long-lived pipeline services: queue, broadcaster, client, processor and pool"""

    @staticmethod
    def register(container: "BaseContainer") -> None:
        settings = get_settings()

        if not container.has(AnalysisClient):
            container.register_singleton(AnalysisClient, AnalysisClient())

        if not container.has(EventBroadcaster):
            container.register_singleton(EventBroadcaster, EventBroadcaster())

        if not container.has(JobQueue):
            container.register_singleton(
                JobQueue,
                JobQueue(
                    repository=container.get(JobRepository),
                    options=JobOptions.from_settings(settings),
                    name=settings.queue_name,
                ),
            )

        processor = AssetProcessor(
            asset_repository=container.get(AssetRepository),
            analysis_client=container.get(AnalysisClient),
            broadcaster=container.get(EventBroadcaster),
        )
        container.register_singleton(AssetProcessor, processor)
        container.register_singleton(
            WorkerPool,
            WorkerPool(queue=container.get(JobQueue), processor=processor),
        )
