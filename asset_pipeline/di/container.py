# Standard library imports
import logging
from typing import Any, Dict, Optional

# Local application imports
from ..core.config import get_settings
from ..application.queue.job_queue import JobQueue
from ..application.workers.worker_pool import WorkerPool
from ..infrastructure.db.mongo_connection import close_database
from ..infrastructure.notifications.event_broadcaster import EventBroadcaster
from .base_container import BaseContainer
from .providers import (
    AssetProvider,
    DatabaseProvider,
    PipelineProvider,
    RepositoryProvider,
)

logger = logging.getLogger(__name__)


class DIContainer(BaseContainer):
    """
    Main dependency injection container.
    Composes all providers in the correct order.

    Registration order is important:
    1. Database connections (DatabaseProvider)
    2. Repositories (RepositoryProvider) - depends on database
    3. Pipeline services (PipelineProvider) - depend on repositories
    4. Use cases (AssetProvider) - depend on repositories and the queue

    Anything passed in `overrides` is registered first and providers leave it alone.
    """

    def __init__(self, overrides: Optional[Dict[Any, Any]] = None) -> None:
        super().__init__()
        for key, instance in (overrides or {}).items():
            self.register_singleton(key, instance)
        self._started = False
        self.setup()

    def setup(self) -> None:
        DatabaseProvider.register(self)
        RepositoryProvider.register(self)
        PipelineProvider.register(self)
        AssetProvider.register(self)

    async def init(self) -> None:
        """Bring the pipeline up: queue indexes, broadcaster handle, then worker pool."""
        settings = get_settings()
        await self.get(JobQueue).init()
        self.get(EventBroadcaster).initialize()
        if settings.worker_enabled:
            await self.get(WorkerPool).start()
        else:
            logger.info("Worker pool disabled (WORKER_ENABLED=false)")
        self._started = True

    async def shutdown(self) -> None:
        """Tear down in reverse: drain workers, close connections, stop queue, close Mongo."""
        if not self._started:
            return
        settings = get_settings()
        await self.get(WorkerPool).stop(drain_timeout=settings.worker_drain_timeout_seconds)
        await self.get(EventBroadcaster).shutdown()
        await self.get(JobQueue).shutdown()
        close_database()
        self._started = False
        logger.info("Pipeline shut down")
