from .job_queue import JobQueue, LEASE_GRACE_MS, STALLED_MESSAGE

__all__ = ["JobQueue", "LEASE_GRACE_MS", "STALLED_MESSAGE"]
