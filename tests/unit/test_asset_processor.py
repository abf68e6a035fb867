"""
Unit tests for AssetProcessor: guards, success path, terminal failure handling.
"""
from unittest.mock import AsyncMock

import pytest

from asset_pipeline.application.workers.asset_processor import AssetProcessor
from asset_pipeline.domain.exceptions import RetryableProcessingError
from asset_pipeline.domain.models.analysis import AnalysisResult, FieldPrediction
from asset_pipeline.domain.models.asset import AssetStatus
from asset_pipeline.domain.models.events import FailureEvent, SuccessEvent
from asset_pipeline.domain.models.job import Job, JobPayload, JobState
from asset_pipeline.infrastructure.external.analysis_client import AnalysisClient
from asset_pipeline.infrastructure.notifications.event_broadcaster import EventBroadcaster
from tests.fakes import make_asset, make_payload


def _job(asset_id="A1", owner_id="U1", attempt=1) -> Job:
    return Job(
        job_id="job-1",
        payload=JobPayload.from_producer(make_payload(asset_id, owner_id)),
        state=JobState.ACTIVE,
        attempt_number=attempt,
    )


@pytest.fixture
def analysis_client():
    client = AsyncMock(spec=AnalysisClient)
    client.analyze.return_value = AnalysisResult(
        brand=FieldPrediction("Nike", 0.8),
        model=FieldPrediction("Air Jordan 1", 0.8),
        processed_image_url="https://x/p.jpg",
    )
    return client


@pytest.fixture
def broadcaster():
    return AsyncMock(spec=EventBroadcaster)


@pytest.fixture
def processor(asset_repository, analysis_client, broadcaster):
    return AssetProcessor(asset_repository, analysis_client, broadcaster)


class TestProcess:
    @pytest.mark.asyncio
    async def test_success_marks_active_and_emits(self, processor, asset_repository, analysis_client, broadcaster):
        asset_repository.add(make_asset())

        result = await processor.process(_job())

        analysis_client.analyze.assert_awaited_once_with("https://x/a.jpg", "sneaker")
        stored = await asset_repository.find_by_id("A1")
        assert stored.status == AssetStatus.ACTIVE
        assert stored.images.processed.url == "https://x/p.jpg"
        assert stored.analysis_result["brand"] == {"value": "Nike", "confidence": 0.8}
        assert "processed_at" in stored.analysis_result

        broadcaster.emit.assert_awaited_once()
        owner_id, event = broadcaster.emit.await_args.args
        assert owner_id == "U1"
        assert isinstance(event, SuccessEvent)
        assert event.processed_image_url == "https://x/p.jpg"

        assert result.success is True
        assert result.skipped is False
        assert result.analysis_result["model"]["value"] == "Air Jordan 1"

    @pytest.mark.asyncio
    async def test_no_processed_image_leaves_field_unset(self, processor, asset_repository, analysis_client):
        analysis_client.analyze.return_value = AnalysisResult(brand=FieldPrediction("Canon", 0.8))
        asset_repository.add(make_asset())

        await processor.process(_job())

        stored = await asset_repository.find_by_id("A1")
        assert stored.status == AssetStatus.ACTIVE
        assert stored.images.processed is None

    @pytest.mark.asyncio
    async def test_missing_asset_is_skipped(self, processor, analysis_client, broadcaster):
        result = await processor.process(_job())

        assert result.success is True
        assert result.skipped is True
        assert result.reason == "Asset not found"
        analysis_client.analyze.assert_not_awaited()
        broadcaster.emit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owner_change_is_skipped(self, processor, asset_repository, analysis_client, broadcaster):
        asset_repository.add(make_asset(owner_id="someone-else"))

        result = await processor.process(_job())

        assert result.skipped is True
        assert result.reason == "Ownership mismatch"
        analysis_client.analyze.assert_not_awaited()
        broadcaster.emit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retryable_error_propagates_and_leaves_asset(
        self, processor, asset_repository, analysis_client, broadcaster
    ):
        analysis_client.analyze.side_effect = RetryableProcessingError("AI service returned 503", 503)
        asset_repository.add(make_asset())

        with pytest.raises(RetryableProcessingError):
            await processor.process(_job())

        assert (await asset_repository.find_by_id("A1")).status == AssetStatus.PROCESSING
        broadcaster.emit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_protected_status_is_not_overwritten(self, processor, asset_repository, broadcaster):
        asset_repository.add(make_asset(status=AssetStatus.PARTIAL))

        result = await processor.process(_job())

        assert result.skipped is True
        assert (await asset_repository.find_by_id("A1")).status == AssetStatus.PARTIAL
        broadcaster.emit.assert_not_awaited()


class TestHandleTerminalFailure:
    @pytest.mark.asyncio
    async def test_marks_failed_and_emits(self, processor, asset_repository, broadcaster):
        asset_repository.add(make_asset(analysis_result={"brand": None}))

        result = await processor.handle_terminal_failure(_job(attempt=3), "AI service returned 503")

        stored = await asset_repository.find_by_id("A1")
        assert stored.status == AssetStatus.FAILED
        assert stored.analysis_result["error"] == "AI service returned 503"
        assert "failed_at" in stored.analysis_result
        assert "brand" in stored.analysis_result

        owner_id, event = broadcaster.emit.await_args.args
        assert owner_id == "U1"
        assert isinstance(event, FailureEvent)
        assert event.error == "AI service returned 503"
        assert result.success is False

    @pytest.mark.asyncio
    async def test_deleted_asset_is_skipped(self, processor, broadcaster):
        result = await processor.handle_terminal_failure(_job(), "boom")
        assert result.skipped is True
        broadcaster.emit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owner_change_is_skipped(self, processor, asset_repository, broadcaster):
        asset_repository.add(make_asset(owner_id="U2"))
        result = await processor.handle_terminal_failure(_job(), "boom")
        assert result.reason == "Ownership mismatch"
        assert (await asset_repository.find_by_id("A1")).status == AssetStatus.PROCESSING
        broadcaster.emit.assert_not_awaited()


def test_processing_result_to_dict():
    from asset_pipeline.application.workers.asset_processor import ProcessingResult

    assert ProcessingResult(success=True, asset_id="A1", duration_ms=5).to_dict() == {
        "success": True, "asset_id": "A1", "duration_ms": 5
    }
    skipped = ProcessingResult(True, "A1", 1, skipped=True, reason="Asset not found").to_dict()
    assert skipped["skipped"] is True
    assert skipped["reason"] == "Asset not found"
