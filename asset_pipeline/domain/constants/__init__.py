"""Constants for domain model field names"""

from .asset_fields import AssetFields
from .job_fields import JobFields, JOB_PAYLOAD_FIELDS

__all__ = [
    "AssetFields",
    "JobFields",
    "JOB_PAYLOAD_FIELDS",
]
