"""
Worker Pool
===========

Fixed number of asyncio consumers pulling from one JobQueue, plus a reaper
task that recovers jobs whose lease lapsed.
"""

# Standard library imports
import asyncio
import logging
import os
import socket
from typing import List, Optional

# Local application imports
from ...core.config import get_settings
from ...domain.exceptions import RetryableProcessingError
from ...domain.models.job import Job
from ..queue.job_queue import JobQueue
from .asset_processor import AssetProcessor

logger = logging.getLogger(__name__)


def generate_worker_id() -> str:
    """Worker ID as hostname:pid."""
    return f"{socket.gethostname()}:{os.getpid()}"


class WorkerPool:
    """
    Consumes jobs at a fixed concurrency.

    The queue hands each job to exactly one consumer at a time, so consumers
    share no state beyond the queue itself.
    """

    def __init__(
        self,
        queue: JobQueue,
        processor: AssetProcessor,
        concurrency: Optional[int] = None,
        poll_interval: Optional[float] = None,
        stalled_check_interval: Optional[float] = None,
        worker_id: Optional[str] = None,
    ):
        settings = get_settings()
        self.queue = queue
        self.processor = processor
        self.concurrency = concurrency if concurrency is not None else settings.worker_concurrency
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.worker_poll_interval_seconds
        )
        self.stalled_check_interval = (
            stalled_check_interval
            if stalled_check_interval is not None
            else settings.worker_stalled_check_seconds
        )
        self.worker_id = worker_id or generate_worker_id()
        self._stopping = asyncio.Event()
        self._consumers: List[asyncio.Task] = []
        self._reaper: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return bool(self._consumers) and not self._stopping.is_set()

    @property
    def per_attempt_timeout(self) -> float:
        return self.queue.options.per_attempt_timeout_seconds

    async def start(self) -> None:
        if self._consumers:
            return
        self._stopping = asyncio.Event()
        self._consumers = [
            asyncio.create_task(self._consume(f"{self.worker_id}#{index}"))
            for index in range(self.concurrency)
        ]
        self._reaper = asyncio.create_task(self._reap_loop())
        logger.info(f"Worker pool started worker_id={self.worker_id} concurrency={self.concurrency}")

    async def stop(self, drain_timeout: Optional[float] = None) -> None:
        """
        Stop claiming and let in-flight runs finish.

        Runs still going after `drain_timeout` seconds are cancelled; their
        jobs keep the lease and are re-delivered by a later reaper pass.
        """
        if not self._consumers:
            return
        if drain_timeout is None:
            drain_timeout = get_settings().worker_drain_timeout_seconds

        self._stopping.set()
        if self._reaper is not None:
            self._reaper.cancel()
            await asyncio.gather(self._reaper, return_exceptions=True)
            self._reaper = None

        done, pending = await asyncio.wait(self._consumers, timeout=drain_timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(f"Worker pool abandoned {len(pending)} in-flight run(s) after {drain_timeout}s")

        self._consumers = []
        logger.info(f"Worker pool stopped worker_id={self.worker_id}")

    async def run_job(self, job: Job) -> None:
        """Run one claimed job and report the outcome to the queue."""
        try:
            result = await asyncio.wait_for(self.processor.process(job), timeout=self.per_attempt_timeout)
        except asyncio.TimeoutError:
            await self._handle_failure(
                job, RetryableProcessingError(f"Job timed out after {self.per_attempt_timeout}s")
            )
        except Exception as e:
            await self._handle_failure(job, e)
        else:
            await self.queue.complete(job, result.to_dict())

    async def reap_once(self) -> int:
        """
        One stalled-job pass. Jobs failed by the pass get terminal-failure handling.

        Returns:
            Number of jobs failed by this pass
        """
        failed = await self.queue.reap_stalled()
        for job in failed:
            await self._terminal_failure(job, job.last_error or "Job stalled")
        return len(failed)

    async def _handle_failure(self, job: Job, error: Exception) -> None:
        message = str(error) or type(error).__name__
        if not hasattr(error, "retryable"):
            logger.error(f"Unexpected error in job_id={job.job_id}: {message}", exc_info=error)

        outcome = await self.queue.record_failure(job, error)
        if outcome.is_terminal:
            await self._terminal_failure(job, message)

    async def _terminal_failure(self, job: Job, message: str) -> None:
        """
        Mark the asset failed and notify its owner.

        The job is already failed in the queue at this point, so an error here
        leaves the asset in processing until someone repairs it by hand.
        """
        try:
            await self.processor.handle_terminal_failure(job, message)
        except Exception as e:
            logger.error(
                f"Terminal failure handling failed job_id={job.job_id} asset_id={job.asset_id} "
                f"owner_id={job.owner_id}; asset needs repair: {e}",
                exc_info=True,
            )

    async def _consume(self, consumer_id: str) -> None:
        while not self._stopping.is_set():
            try:
                job = await self.queue.claim(consumer_id)
                if job is None:
                    await self._idle()
                    continue
                await self.run_job(job)
            except asyncio.CancelledError:
                logger.info(f"Consumer {consumer_id} cancelled")
                raise
            except Exception as e:
                logger.error(f"Consumer {consumer_id} loop error: {e}", exc_info=True)
                await self._idle()

    async def _reap_loop(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.reap_once()
                await self.queue.purge_expired()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Stalled job check failed: {e}", exc_info=True)
            await asyncio.sleep(self.stalled_check_interval)

    async def _idle(self) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass
