"""
Job Queue
=========

Retry, backoff, retention and stall policy on top of a durable JobRepository.

Delivery is at-least-once: a claimed job holds a lease of the per-attempt
timeout plus a grace period, and a job whose lease lapses (consumer crash,
cancelled drain) is handed out again by reap_stalled(). A stall gives back the
attempt it used and counts against a separate stall budget instead.
"""

# Standard library imports
import logging
from typing import Any, List, Mapping, Optional

# Local application imports
from ...domain.models.job import FailureOutcome, Job, JobOptions, JobPayload, QueueCounts
from ...domain.repositories.job_repository import JobRepository
from ...utils.datetime_utils import add_ms, utc_now

logger = logging.getLogger(__name__)

LEASE_GRACE_MS = 30000
STALLED_MESSAGE = "Job stalled more than allowable limit"


class JobQueue:
    """Named, durable queue of asset processing jobs."""

    def __init__(
        self,
        repository: JobRepository,
        options: Optional[JobOptions] = None,
        name: str = "ai-processing",
    ):
        self.repository = repository
        self.options = options or JobOptions()
        self.name = name
        self._paused = False

    @property
    def is_paused(self) -> bool:
        return self._paused

    async def init(self) -> None:
        await self.repository.ensure_indexes()
        self._paused = False
        logger.info(
            f"Job queue '{self.name}' ready (attempts={self.options.attempts}, "
            f"max_stalled={self.options.max_stalled_count}, "
            f"backoff_base_ms={self.options.backoff.base_delay_ms}, "
            f"timeout_ms={self.options.per_attempt_timeout_ms})"
        )

    async def shutdown(self) -> None:
        self.pause()
        logger.info(f"Job queue '{self.name}' shut down")

    def pause(self) -> None:
        self._paused = True
        logger.info(f"Job queue '{self.name}' paused")

    def resume(self) -> None:
        self._paused = False
        logger.info(f"Job queue '{self.name}' resumed")

    async def enqueue(self, data: Mapping[str, Any]) -> str:
        """
        Validate a producer payload and store it as a waiting job.

        Only the five canonical fields are kept; any other key is dropped.

        Args:
            data: Producer payload (camelCase or snake_case keys)

        Returns:
            The new job's ID

        Raises:
            MissingFieldError: If a required field is absent or empty; nothing is stored
        """
        payload = JobPayload.from_producer(data)
        job = await self.repository.insert(
            payload,
            max_attempts=self.options.attempts,
            available_at=utc_now(),
        )
        logger.info(
            f"Enqueued job job_id={job.job_id} asset_id={payload.asset_id} "
            f"owner_id={payload.owner_id} category={payload.category}"
        )
        return job.job_id

    async def claim(self, worker_id: str) -> Optional[Job]:
        """
        Take the oldest eligible waiting job for `worker_id`.

        Returns:
            The job, now active with its attempt number incremented, or None
            if nothing is eligible or the queue is paused
        """
        if self._paused:
            return None

        now = utc_now()
        lease_expires_at = add_ms(now, self.options.per_attempt_timeout_ms + LEASE_GRACE_MS)
        job = await self.repository.claim(worker_id, now, lease_expires_at)
        if job is not None:
            logger.info(
                f"Claimed job job_id={job.job_id} asset_id={job.asset_id} "
                f"attempt={job.attempt_number}/{job.max_attempts} worker={worker_id}"
            )
        return job

    async def complete(self, job: Job, result: Optional[Mapping[str, Any]] = None) -> Optional[Job]:
        now = utc_now()
        updated = await self.repository.complete(
            job.job_id,
            dict(result) if result is not None else None,
            finished_at=now,
            expire_at=add_ms(now, self.options.retain_completed_seconds * 1000),
        )
        if updated is not None:
            logger.info(f"Completed job job_id={job.job_id} asset_id={job.asset_id}")
        return updated

    async def record_failure(self, job: Job, error: BaseException) -> FailureOutcome:
        """
        Decide what happens to a job whose attempt just failed.

        Errors without a `retryable` attribute are treated as retryable.

        Args:
            job: The active job as it was claimed
            error: What the attempt raised

        Returns:
            RETRY_SCHEDULED if the job went back to waiting, EXHAUSTED if a
            retryable failure hit the attempt ceiling, UNRECOVERABLE if the
            error was non-retryable
        """
        message = str(error) or type(error).__name__
        retryable = bool(getattr(error, "retryable", True))
        now = utc_now()

        if retryable and job.attempt_number < job.max_attempts:
            delay_ms = self.options.backoff.delay_ms(job.attempt_number)
            await self.repository.reschedule(job.job_id, message, add_ms(now, delay_ms))
            logger.warning(
                f"Retry scheduled job_id={job.job_id} asset_id={job.asset_id} "
                f"attempt={job.attempt_number}/{job.max_attempts} delay_ms={delay_ms} error={message}"
            )
            return FailureOutcome.RETRY_SCHEDULED

        outcome = FailureOutcome.EXHAUSTED if retryable else FailureOutcome.UNRECOVERABLE
        await self._fail(job, message, now)
        logger.error(
            f"Job failed job_id={job.job_id} asset_id={job.asset_id} "
            f"attempt={job.attempt_number}/{job.max_attempts} outcome={outcome.value} error={message}"
        )
        return outcome

    async def reap_stalled(self) -> List[Job]:
        """
        Recover active jobs whose lease has lapsed.

        A stalled run does not count as a failed attempt. Jobs within the stall
        budget go back to waiting with the attempt given back. Jobs that have
        already stalled max_stalled_count times are failed and returned so the
        caller can run terminal-failure handling.
        """
        now = utc_now()
        stalled = await self.repository.find_stalled(now)
        failed: List[Job] = []
        for job in stalled:
            if job.stalled_count < self.options.max_stalled_count:
                released = await self.repository.release(job.job_id, now)
                if released is not None:
                    logger.warning(
                        f"Stalled job returned to queue job_id={job.job_id} asset_id={job.asset_id} "
                        f"stalled={released.stalled_count}/{self.options.max_stalled_count}"
                    )
                continue

            updated = await self._fail(job, STALLED_MESSAGE, now)
            if updated is not None:
                logger.error(f"Stalled job failed job_id={job.job_id} asset_id={job.asset_id}")
                failed.append(updated)
        return failed

    async def get_counts(self) -> QueueCounts:
        counts = await self.repository.count_by_state(utc_now())
        queue_counts = QueueCounts(
            waiting=counts.get("waiting", 0),
            active=counts.get("active", 0),
            completed=counts.get("completed", 0),
            failed=counts.get("failed", 0),
            delayed=counts.get("delayed", 0),
        )
        if self._paused:
            queue_counts.paused = queue_counts.waiting + queue_counts.delayed
            queue_counts.waiting = 0
            queue_counts.delayed = 0
        return queue_counts

    async def purge_expired(self) -> int:
        removed = await self.repository.purge_expired(utc_now())
        if removed:
            logger.info(f"Purged {removed} expired job(s) from queue '{self.name}'")
        return removed

    async def _fail(self, job: Job, message: str, now) -> Optional[Job]:
        return await self.repository.fail(
            job.job_id,
            message,
            finished_at=now,
            expire_at=add_ms(now, self.options.retain_failed_seconds * 1000),
        )
