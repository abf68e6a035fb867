# Standard library imports
import logging
import uuid
from datetime import datetime
from typing import Optional, Dict, Any, List

# External package imports
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, ReturnDocument

# Local application imports
from ...domain.repositories.job_repository import JobRepository
from ...domain.models.job import Job, JobPayload, JobState
from ...domain.constants import JobFields
from ...utils.datetime_utils import ensure_utc
from .mongo_connection import get_job_collection

logger = logging.getLogger(__name__)


class MongoJobRepository(JobRepository):
    """
    MongoDB implementation of JobRepository.

    Every document is stamped with the queue name so several logical queues
    can share one collection. Claims use find_one_and_update, which is atomic
    per document, so a waiting job is delivered to exactly one consumer.
    """

    def __init__(self, queue_name: str, job_collection: Optional[AsyncIOMotorCollection] = None) -> None:
        self.queue_name = queue_name
        self.job_collection = job_collection if job_collection is not None else get_job_collection()

    async def ensure_indexes(self) -> None:
        """Create the claim index, the job_id unique index and the retention TTL index."""
        await self.job_collection.create_index([(JobFields.JOB_ID, ASCENDING)], unique=True)
        await self.job_collection.create_index(
            [
                (JobFields.QUEUE, ASCENDING),
                (JobFields.STATE, ASCENDING),
                (JobFields.AVAILABLE_AT, ASCENDING),
            ]
        )
        await self.job_collection.create_index(
            [(JobFields.QUEUE, ASCENDING), (JobFields.STATE, ASCENDING), (JobFields.LEASE_EXPIRES_AT, ASCENDING)]
        )
        # expire_at is only set once a job finishes; MongoDB deletes it when the date passes
        await self.job_collection.create_index([(JobFields.EXPIRE_AT, ASCENDING)], expireAfterSeconds=0)
        logger.info(f"Job queue indexes ensured for queue {self.queue_name}")

    async def insert(self, payload: JobPayload, max_attempts: int, available_at: datetime) -> Job:
        document: Dict[str, Any] = {
            JobFields.JOB_ID: uuid.uuid4().hex,
            JobFields.QUEUE: self.queue_name,
            JobFields.STATE: JobState.WAITING.value,
            JobFields.ATTEMPT_NUMBER: 0,
            JobFields.MAX_ATTEMPTS: max_attempts,
            JobFields.STALLED_COUNT: 0,
            JobFields.AVAILABLE_AT: available_at,
            JobFields.LOCKED_BY: None,
            JobFields.LEASE_EXPIRES_AT: None,
            JobFields.LAST_ERROR: None,
            JobFields.RESULT: None,
            JobFields.CREATED_AT: available_at,
            JobFields.FINISHED_AT: None,
            **payload.to_document(),
        }
        try:
            await self.job_collection.insert_one(document)
        except Exception as e:
            raise RuntimeError(f"Error inserting job: {str(e)}")
        return self._document_to_job(document)

    async def claim(self, worker_id: str, now: datetime, lease_expires_at: datetime) -> Optional[Job]:
        try:
            document = await self.job_collection.find_one_and_update(
                {
                    JobFields.QUEUE: self.queue_name,
                    JobFields.STATE: JobState.WAITING.value,
                    JobFields.AVAILABLE_AT: {"$lte": now},
                },
                {
                    "$set": {
                        JobFields.STATE: JobState.ACTIVE.value,
                        JobFields.LOCKED_BY: worker_id,
                        JobFields.LEASE_EXPIRES_AT: lease_expires_at,
                    },
                    "$inc": {JobFields.ATTEMPT_NUMBER: 1},
                },
                sort=[(JobFields.AVAILABLE_AT, ASCENDING), (JobFields.CREATED_AT, ASCENDING)],
                return_document=ReturnDocument.AFTER,
            )
        except Exception as e:
            raise RuntimeError(f"Error claiming job: {str(e)}")
        return self._document_to_job(document) if document else None

    async def complete(
        self, job_id: str, result: Optional[Dict[str, Any]], finished_at: datetime, expire_at: datetime
    ) -> Optional[Job]:
        return await self._transition(
            job_id,
            from_states=[JobState.ACTIVE],
            updates={
                JobFields.STATE: JobState.COMPLETED.value,
                JobFields.RESULT: result,
                JobFields.FINISHED_AT: finished_at,
                JobFields.EXPIRE_AT: expire_at,
                JobFields.LOCKED_BY: None,
                JobFields.LEASE_EXPIRES_AT: None,
            },
        )

    async def reschedule(self, job_id: str, error: str, available_at: datetime) -> Optional[Job]:
        return await self._transition(
            job_id,
            from_states=[JobState.ACTIVE],
            updates={
                JobFields.STATE: JobState.WAITING.value,
                JobFields.LAST_ERROR: error,
                JobFields.AVAILABLE_AT: available_at,
                JobFields.LOCKED_BY: None,
                JobFields.LEASE_EXPIRES_AT: None,
            },
        )

    async def fail(self, job_id: str, error: str, finished_at: datetime, expire_at: datetime) -> Optional[Job]:
        return await self._transition(
            job_id,
            from_states=[JobState.ACTIVE],
            updates={
                JobFields.STATE: JobState.FAILED.value,
                JobFields.LAST_ERROR: error,
                JobFields.FINISHED_AT: finished_at,
                JobFields.EXPIRE_AT: expire_at,
                JobFields.LOCKED_BY: None,
                JobFields.LEASE_EXPIRES_AT: None,
            },
        )

    async def find_stalled(self, now: datetime) -> List[Job]:
        try:
            cursor = self.job_collection.find(
                {
                    JobFields.QUEUE: self.queue_name,
                    JobFields.STATE: JobState.ACTIVE.value,
                    JobFields.LEASE_EXPIRES_AT: {"$lt": now},
                }
            )
            jobs = []
            async for document in cursor:
                jobs.append(self._document_to_job(document))
            return jobs
        except Exception as e:
            raise RuntimeError(f"Error listing stalled jobs: {str(e)}")

    async def release(self, job_id: str, now: datetime) -> Optional[Job]:
        try:
            document = await self.job_collection.find_one_and_update(
                {
                    JobFields.JOB_ID: job_id,
                    JobFields.STATE: JobState.ACTIVE.value,
                    JobFields.LEASE_EXPIRES_AT: {"$lt": now},
                },
                {
                    "$set": {
                        JobFields.STATE: JobState.WAITING.value,
                        JobFields.AVAILABLE_AT: now,
                        JobFields.LOCKED_BY: None,
                        JobFields.LEASE_EXPIRES_AT: None,
                    },
                    "$inc": {JobFields.ATTEMPT_NUMBER: -1, JobFields.STALLED_COUNT: 1},
                },
                return_document=ReturnDocument.AFTER,
            )
        except Exception as e:
            raise RuntimeError(f"Error releasing stalled job: {str(e)}")
        return self._document_to_job(document) if document else None

    async def get(self, job_id: str) -> Optional[Job]:
        try:
            document = await self.job_collection.find_one(
                {JobFields.QUEUE: self.queue_name, JobFields.JOB_ID: job_id}
            )
        except Exception as e:
            raise RuntimeError(f"Error finding job: {str(e)}")
        return self._document_to_job(document) if document else None

    async def count_by_state(self, now: datetime) -> Dict[str, int]:
        base = {JobFields.QUEUE: self.queue_name}
        try:
            waiting = await self.job_collection.count_documents(
                {**base, JobFields.STATE: JobState.WAITING.value, JobFields.AVAILABLE_AT: {"$lte": now}}
            )
            delayed = await self.job_collection.count_documents(
                {**base, JobFields.STATE: JobState.WAITING.value, JobFields.AVAILABLE_AT: {"$gt": now}}
            )
            active = await self.job_collection.count_documents({**base, JobFields.STATE: JobState.ACTIVE.value})
            completed = await self.job_collection.count_documents(
                {**base, JobFields.STATE: JobState.COMPLETED.value}
            )
            failed = await self.job_collection.count_documents({**base, JobFields.STATE: JobState.FAILED.value})
        except Exception as e:
            raise RuntimeError(f"Error counting jobs: {str(e)}")
        return {
            "waiting": waiting,
            "delayed": delayed,
            "active": active,
            "completed": completed,
            "failed": failed,
        }

    async def purge_expired(self, now: datetime) -> int:
        try:
            result = await self.job_collection.delete_many(
                {JobFields.QUEUE: self.queue_name, JobFields.EXPIRE_AT: {"$lte": now}}
            )
        except Exception as e:
            raise RuntimeError(f"Error purging expired jobs: {str(e)}")
        return result.deleted_count

    async def _transition(self, job_id: str, from_states: List[JobState], updates: Dict[str, Any]) -> Optional[Job]:
        """Apply `updates` only if the job is currently in one of `from_states`."""
        try:
            document = await self.job_collection.find_one_and_update(
                {
                    JobFields.QUEUE: self.queue_name,
                    JobFields.JOB_ID: job_id,
                    JobFields.STATE: {"$in": [state.value for state in from_states]},
                },
                {"$set": updates},
                return_document=ReturnDocument.AFTER,
            )
        except Exception as e:
            raise RuntimeError(f"Error updating job {job_id}: {str(e)}")
        if document is None:
            logger.warning(
                f"Job {job_id} was not in {[s.value for s in from_states]}; transition to "
                f"{updates.get(JobFields.STATE)} skipped"
            )
            return None
        return self._document_to_job(document)

    def _document_to_job(self, document: Dict[str, Any]) -> Job:
        """
        Convert MongoDB document to Job domain model

        Args:
            document: MongoDB document dictionary

        Returns:
            Job domain model
        """
        payload = JobPayload(
            asset_id=document[JobFields.ASSET_ID],
            owner_id=document[JobFields.OWNER_ID],
            source_url=document[JobFields.SOURCE_URL],
            category=document[JobFields.CATEGORY],
            submitted_at=document[JobFields.SUBMITTED_AT],
        )
        return Job(
            job_id=document[JobFields.JOB_ID],
            payload=payload,
            state=JobState(document.get(JobFields.STATE, JobState.WAITING.value)),
            attempt_number=document.get(JobFields.ATTEMPT_NUMBER, 0),
            max_attempts=document.get(JobFields.MAX_ATTEMPTS, 3),
            stalled_count=document.get(JobFields.STALLED_COUNT, 0),
            available_at=ensure_utc(document.get(JobFields.AVAILABLE_AT)),
            locked_by=document.get(JobFields.LOCKED_BY),
            lease_expires_at=ensure_utc(document.get(JobFields.LEASE_EXPIRES_AT)),
            last_error=document.get(JobFields.LAST_ERROR),
            result=document.get(JobFields.RESULT),
            created_at=ensure_utc(document.get(JobFields.CREATED_AT)),
            finished_at=ensure_utc(document.get(JobFields.FINISHED_AT)),
            expire_at=ensure_utc(document.get(JobFields.EXPIRE_AT)),
        )
