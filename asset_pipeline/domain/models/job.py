# Standard library imports
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

# Local application imports
from ..constants.job_fields import JOB_PAYLOAD_FIELDS, JobFields
from ..exceptions import MissingFieldError


class JobState(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class FailureOutcome(str, Enum):
    """What the queue decided after an attempt failed."""
    RETRY_SCHEDULED = "retry_scheduled"
    EXHAUSTED = "exhausted"
    UNRECOVERABLE = "unrecoverable"

    @property
    def is_terminal(self) -> bool:
        return self is not FailureOutcome.RETRY_SCHEDULED


@dataclass(frozen=True)
class BackoffPolicy:
    type: str = "exponential"
    base_delay_ms: int = 2000

    def delay_ms(self, attempt_number: int) -> int:
        """
        Delay before the attempt that follows `attempt_number`.

        Attempt 1 failing waits base, attempt 2 waits 2*base, attempt 3 waits 4*base.
        """
        if self.type == "fixed":
            return self.base_delay_ms
        return self.base_delay_ms * (2 ** max(0, attempt_number - 1))


@dataclass(frozen=True)
class JobOptions:
    """Fixed options applied to every processing job."""
    attempts: int = 3
    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)
    max_stalled_count: int = 2
    per_attempt_timeout_ms: int = 120000
    retain_completed_seconds: int = 24 * 3600
    retain_failed_seconds: int = 7 * 24 * 3600

    @classmethod
    def from_settings(cls, settings: Any) -> "JobOptions":
        return cls(
            attempts=settings.queue_max_attempts,
            max_stalled_count=settings.queue_max_stalled_count,
            backoff=BackoffPolicy(base_delay_ms=settings.queue_backoff_base_ms),
            per_attempt_timeout_ms=settings.queue_job_timeout_ms,
            retain_completed_seconds=settings.queue_retain_completed_seconds,
            retain_failed_seconds=settings.queue_retain_failed_seconds,
        )

    @property
    def per_attempt_timeout_seconds(self) -> float:
        return self.per_attempt_timeout_ms / 1000.0


# (wire name, stored name) in the order they are validated
_PAYLOAD_FIELDS: Tuple[Tuple[str, str], ...] = tuple(JOB_PAYLOAD_FIELDS.items())


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True)
class JobPayload:
    """The five canonical fields a producer hands to the queue."""
    asset_id: str
    owner_id: str
    source_url: str
    category: str
    submitted_at: str

    @classmethod
    def from_producer(cls, data: Mapping[str, Any]) -> "JobPayload":
        """
        Validate a producer payload and keep only the canonical fields.

        Accepts either the camelCase wire names or their snake_case
        equivalents. Anything else in `data` is dropped.

        Raises:
            MissingFieldError: If a required field is absent or empty
        """
        values: Dict[str, str] = {}
        for wire_name, stored_name in _PAYLOAD_FIELDS:
            value = data.get(wire_name)
            if _is_blank(value):
                value = data.get(stored_name)
            if _is_blank(value):
                raise MissingFieldError(wire_name)
            if stored_name == JobFields.SUBMITTED_AT and isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            values[stored_name] = str(value)
        return cls(**values)

    def to_document(self) -> Dict[str, str]:
        return {
            JobFields.ASSET_ID: self.asset_id,
            JobFields.OWNER_ID: self.owner_id,
            JobFields.SOURCE_URL: self.source_url,
            JobFields.CATEGORY: self.category,
            JobFields.SUBMITTED_AT: self.submitted_at,
        }

    def to_wire(self) -> Dict[str, str]:
        return {
            "assetId": self.asset_id,
            "ownerId": self.owner_id,
            "sourceUrl": self.source_url,
            "category": self.category,
            "submittedAt": self.submitted_at,
        }


@dataclass
class Job:
    """A queued unit of work plus the queue's bookkeeping for it."""
    job_id: str
    payload: JobPayload
    state: JobState = JobState.WAITING
    attempt_number: int = 0
    max_attempts: int = 3
    stalled_count: int = 0
    available_at: Optional[datetime] = None
    locked_by: Optional[str] = None
    lease_expires_at: Optional[datetime] = None
    last_error: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    expire_at: Optional[datetime] = None

    @property
    def asset_id(self) -> str:
        return self.payload.asset_id

    @property
    def owner_id(self) -> str:
        return self.payload.owner_id

    @property
    def identity(self) -> Tuple[str, int]:
        return (self.payload.asset_id, self.attempt_number)

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.max_attempts - self.attempt_number)


@dataclass
class QueueCounts:
    waiting: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0
    delayed: int = 0
    paused: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "waiting": self.waiting,
            "active": self.active,
            "completed": self.completed,
            "failed": self.failed,
            "delayed": self.delayed,
            "paused": self.paused,
        }
