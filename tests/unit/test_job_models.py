"""
Unit tests for job payload validation and retry policy types.
"""
from datetime import datetime, timezone

import pytest

from asset_pipeline.domain.exceptions import MissingFieldError
from asset_pipeline.domain.models.asset import AssetCategory
from asset_pipeline.domain.models.job import (
    BackoffPolicy,
    FailureOutcome,
    Job,
    JobOptions,
    JobPayload,
    QueueCounts,
)
from tests.fakes import make_payload


class TestJobPayload:
    def test_accepts_wire_names(self):
        payload = JobPayload.from_producer(make_payload())
        assert payload.asset_id == "A1"
        assert payload.owner_id == "U1"
        assert payload.source_url == "https://x/a.jpg"
        assert payload.category == "sneaker"
        assert payload.submitted_at == "2025-01-01T00:00:00Z"

    def test_accepts_snake_case(self):
        payload = JobPayload.from_producer({
            "asset_id": "A2",
            "owner_id": "U2",
            "source_url": "https://x/b.jpg",
            "category": "lego",
            "submitted_at": "2025-02-01T00:00:00Z",
        })
        assert payload.asset_id == "A2"
        assert payload.category == "lego"

    @pytest.mark.parametrize(
        "field", ["assetId", "ownerId", "sourceUrl", "category", "submittedAt"]
    )
    def test_missing_field_is_named(self, field):
        data = make_payload()
        del data[field]
        with pytest.raises(MissingFieldError) as exc_info:
            JobPayload.from_producer(data)
        assert exc_info.value.field == field
        assert str(exc_info.value) == f"Missing required field: {field}"

    @pytest.mark.parametrize("blank", ["", "   ", None])
    def test_blank_values_count_as_missing(self, blank):
        with pytest.raises(MissingFieldError):
            JobPayload.from_producer(make_payload(ownerId=blank))

    def test_extra_fields_are_stripped(self):
        payload = JobPayload.from_producer(make_payload(priority=10, note="hi"))
        assert set(payload.to_wire()) == {"assetId", "ownerId", "sourceUrl", "category", "submittedAt"}
        assert set(payload.to_document()) == {
            "asset_id", "owner_id", "source_url", "category", "submitted_at"
        }

    def test_coerces_enum_and_datetime(self):
        submitted = datetime(2025, 1, 1, tzinfo=timezone.utc)
        payload = JobPayload.from_producer(
            make_payload(category=AssetCategory.CAMERA, submittedAt=submitted)
        )
        assert payload.category == "camera"
        assert payload.submitted_at == submitted.isoformat()


class TestBackoffPolicy:
    def test_exponential_delays(self):
        policy = BackoffPolicy(base_delay_ms=2000)
        assert [policy.delay_ms(n) for n in (1, 2, 3)] == [2000, 4000, 8000]

    def test_fixed_delay(self):
        policy = BackoffPolicy(type="fixed", base_delay_ms=500)
        assert policy.delay_ms(3) == 500


class TestJobOptions:
    def test_defaults(self):
        options = JobOptions()
        assert options.attempts == 3
        assert options.backoff.type == "exponential"
        assert options.backoff.base_delay_ms == 2000
        assert options.per_attempt_timeout_ms == 120000
        assert options.per_attempt_timeout_seconds == 120.0
        assert options.retain_completed_seconds == 86400
        assert options.retain_failed_seconds == 604800

    def test_from_settings(self):
        from asset_pipeline.core.config import get_settings

        options = JobOptions.from_settings(get_settings())
        assert options.attempts == 3
        assert options.max_stalled_count == 2
        assert options.per_attempt_timeout_ms == 120000


class TestJob:
    def test_identity_and_remaining(self):
        job = Job(job_id="j1", payload=JobPayload.from_producer(make_payload()), attempt_number=1)
        assert job.identity == ("A1", 1)
        assert job.attempts_remaining == 2


def test_failure_outcome_terminal_flags():
    assert FailureOutcome.RETRY_SCHEDULED.is_terminal is False
    assert FailureOutcome.EXHAUSTED.is_terminal is True
    assert FailureOutcome.UNRECOVERABLE.is_terminal is True


def test_queue_counts_dict():
    counts = QueueCounts(waiting=1, failed=2)
    assert counts.to_dict() == {
        "waiting": 1, "active": 0, "completed": 0, "failed": 2, "delayed": 0, "paused": 0
    }
