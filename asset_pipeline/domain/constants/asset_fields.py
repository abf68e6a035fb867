"""Constants for Asset model field names"""


class AssetFields:
    """Field name constants for Asset model"""
    ID = "id"
    OWNER_ID = "owner_id"
    CATEGORY = "category"
    STATUS = "status"
    IMAGES = "images"
    ANALYSIS_RESULT = "analysis_result"
    PROCESSING_JOB_ID = "processing_job_id"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"

    # Nested paths used in partial updates
    IMAGES_ORIGINAL = "images.original"
    IMAGES_PROCESSED = "images.processed"

    # MongoDB specific
    MONGO_ID = "_id"  # MongoDB's internal _id field
