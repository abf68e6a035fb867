"""
Unit tests for WorkerPool: outcome routing, timeouts, reaping and drain.
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from asset_pipeline.application.queue.job_queue import JobQueue
from asset_pipeline.application.workers.asset_processor import AssetProcessor, ProcessingResult
from asset_pipeline.application.workers.worker_pool import WorkerPool
from asset_pipeline.domain.exceptions import RetryableProcessingError, TerminalProcessingError
from asset_pipeline.domain.models.job import BackoffPolicy, JobOptions, JobState
from tests.fakes import make_payload


def _ok(job):
    return ProcessingResult(success=True, asset_id=job.asset_id, duration_ms=1)


@pytest.fixture
def processor():
    processor = AsyncMock(spec=AssetProcessor)
    processor.process.side_effect = lambda job: _ok(job)
    return processor


@pytest.fixture
def queue(job_repository):
    return JobQueue(job_repository, JobOptions(backoff=BackoffPolicy(base_delay_ms=0)))


@pytest.fixture
def pool(queue, processor):
    return WorkerPool(queue, processor, concurrency=2, poll_interval=0.01, stalled_check_interval=0.05)


async def _wait_for(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


class TestRunJob:
    @pytest.mark.asyncio
    async def test_success_completes_job(self, pool, queue, job_repository):
        await queue.enqueue(make_payload())
        job = await queue.claim("w1")

        await pool.run_job(job)

        stored = await job_repository.get(job.job_id)
        assert stored.state == JobState.COMPLETED
        assert stored.result == {"success": True, "asset_id": "A1", "duration_ms": 1}

    @pytest.mark.asyncio
    async def test_retryable_error_schedules_retry(self, pool, queue, job_repository, processor):
        processor.process.side_effect = RetryableProcessingError("AI service returned 503", 503)
        await queue.enqueue(make_payload())
        job = await queue.claim("w1")

        await pool.run_job(job)

        assert (await job_repository.get(job.job_id)).state == JobState.WAITING
        processor.handle_terminal_failure.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_terminal_error_runs_failure_handler(self, pool, queue, job_repository, processor):
        processor.process.side_effect = TerminalProcessingError("AI service returned 400", 400)
        await queue.enqueue(make_payload())
        job = await queue.claim("w1")

        await pool.run_job(job)

        assert (await job_repository.get(job.job_id)).state == JobState.FAILED
        processor.handle_terminal_failure.assert_awaited_once_with(job, "AI service returned 400")

    @pytest.mark.asyncio
    async def test_failure_handler_error_is_logged_not_raised(self, pool, queue, job_repository, processor, caplog):
        processor.process.side_effect = TerminalProcessingError("AI service returned 400", 400)
        processor.handle_terminal_failure.side_effect = RuntimeError("Error updating asset: connection refused")
        await queue.enqueue(make_payload())
        job = await queue.claim("w1")

        await pool.run_job(job)

        assert (await job_repository.get(job.job_id)).state == JobState.FAILED
        assert "asset needs repair" in caplog.text
        assert "asset_id=A1" in caplog.text

    @pytest.mark.asyncio
    async def test_per_attempt_timeout_is_retryable(self, job_repository, processor):
        queue = JobQueue(job_repository, JobOptions(per_attempt_timeout_ms=50))

        async def slow(job):
            await asyncio.sleep(5)

        processor.process.side_effect = slow
        pool = WorkerPool(queue, processor, concurrency=1)
        await queue.enqueue(make_payload())
        job = await queue.claim("w1")

        await pool.run_job(job)

        stored = await job_repository.get(job.job_id)
        assert stored.state == JobState.WAITING
        assert "timed out" in stored.last_error


class TestReap:
    @pytest.mark.asyncio
    async def test_reap_once_fails_exhausted_stalled_jobs(self, pool, queue, job_repository, processor):
        await queue.enqueue(make_payload())
        job = await queue.claim("w1")
        job_repository.jobs[job.job_id].stalled_count = 2
        job_repository.expire_lease(job.job_id)

        assert await pool.reap_once() == 1

        failed_job, message = processor.handle_terminal_failure.await_args.args
        assert failed_job.job_id == job.job_id
        assert message == "Job stalled more than allowable limit"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_processes_queue_then_stop(self, pool, queue, job_repository, processor):
        for asset_id in ("A1", "A2", "A3"):
            await queue.enqueue(make_payload(asset_id))

        await pool.start()
        assert pool.is_running
        await _wait_for(
            lambda: all(job.state == JobState.COMPLETED for job in job_repository.jobs.values())
        )
        await pool.stop(drain_timeout=1)

        assert not pool.is_running
        assert processor.process.await_count == 3

    @pytest.mark.asyncio
    async def test_retry_until_exhausted(self, pool, queue, job_repository, processor):
        processor.process.side_effect = RetryableProcessingError("AI service returned 503", 503)
        job_id = await queue.enqueue(make_payload())

        await pool.start()
        await _wait_for(lambda: job_repository.jobs[job_id].state == JobState.FAILED)
        await pool.stop(drain_timeout=1)

        assert processor.process.await_count == 3
        processor.handle_terminal_failure.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_abandons_runs_past_drain_timeout(self, pool, queue, job_repository, processor):
        started = asyncio.Event()

        async def hang(job):
            started.set()
            await asyncio.sleep(5)

        processor.process.side_effect = hang
        job_id = await queue.enqueue(make_payload())

        await pool.start()
        await asyncio.wait_for(started.wait(), timeout=2)
        await pool.stop(drain_timeout=0.05)

        # Still leased; a later reaper pass re-delivers it
        assert job_repository.jobs[job_id].state == JobState.ACTIVE
        assert not pool.is_running

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self, pool):
        await pool.stop()
        assert not pool.is_running
