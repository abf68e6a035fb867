"""Constants for processing Job field names"""


class JobFields:
    """Field name constants for queued Job documents"""
    # Canonical payload (the only fields a producer may supply)
    ASSET_ID = "asset_id"
    OWNER_ID = "owner_id"
    SOURCE_URL = "source_url"
    CATEGORY = "category"
    SUBMITTED_AT = "submitted_at"

    # Queue-owned bookkeeping
    JOB_ID = "job_id"
    QUEUE = "queue"
    STATE = "state"
    ATTEMPT_NUMBER = "attempt_number"
    MAX_ATTEMPTS = "max_attempts"
    STALLED_COUNT = "stalled_count"
    AVAILABLE_AT = "available_at"
    LOCKED_BY = "locked_by"
    LEASE_EXPIRES_AT = "lease_expires_at"
    LAST_ERROR = "last_error"
    RESULT = "result"
    CREATED_AT = "created_at"
    FINISHED_AT = "finished_at"
    EXPIRE_AT = "expire_at"

    # MongoDB specific
    MONGO_ID = "_id"


# Producer-facing names (camelCase wire contract) -> stored field names
JOB_PAYLOAD_FIELDS = {
    "assetId": JobFields.ASSET_ID,
    "ownerId": JobFields.OWNER_ID,
    "sourceUrl": JobFields.SOURCE_URL,
    "category": JobFields.CATEGORY,
    "submittedAt": JobFields.SUBMITTED_AT,
}
