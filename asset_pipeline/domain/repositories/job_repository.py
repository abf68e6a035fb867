from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional
from ..models.job import Job, JobPayload


class JobRepository(ABC):
    """
    Repository interface - durable storage for queued processing jobs.

    Implementations must make claim() atomic: a waiting job is handed to at
    most one caller per attempt.
    """

    @abstractmethod
    async def insert(self, payload: JobPayload, max_attempts: int, available_at: datetime) -> Job:
        """Persist a new waiting job"""
        pass

    @abstractmethod
    async def claim(self, worker_id: str, now: datetime, lease_expires_at: datetime) -> Optional[Job]:
        """Move the oldest eligible waiting job to active and return it"""
        pass

    @abstractmethod
    async def complete(
        self, job_id: str, result: Optional[Dict[str, Any]], finished_at: datetime, expire_at: datetime
    ) -> Optional[Job]:
        """Mark an active job completed"""
        pass

    @abstractmethod
    async def reschedule(self, job_id: str, error: str, available_at: datetime) -> Optional[Job]:
        """Return an active job to waiting, eligible again at available_at"""
        pass

    @abstractmethod
    async def fail(self, job_id: str, error: str, finished_at: datetime, expire_at: datetime) -> Optional[Job]:
        """Mark a job permanently failed"""
        pass

    @abstractmethod
    async def find_stalled(self, now: datetime) -> List[Job]:
        """Active jobs whose lease expired before now"""
        pass

    @abstractmethod
    async def release(self, job_id: str, now: datetime) -> Optional[Job]:
        """Return a stalled active job to waiting, giving back the attempt it used and counting the stall"""
        pass

    @abstractmethod
    async def get(self, job_id: str) -> Optional[Job]:
        """Get a job by ID"""
        pass

    @abstractmethod
    async def count_by_state(self, now: datetime) -> Dict[str, int]:
        """Counts keyed by waiting, delayed, active, completed, failed"""
        pass

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int:
        """Delete finished jobs whose retention window has passed"""
        pass

    async def ensure_indexes(self) -> None:
        """Create backing indexes (no-op by default)"""
        return None
