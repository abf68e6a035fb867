# Standard library imports
import logging
from typing import Optional

# External package imports
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection

# Local application imports
from ...core.config import get_settings

logger = logging.getLogger(__name__)

ASSET_COLLECTION = "assets"
JOB_COLLECTION = "processing_jobs"

# Global MongoDB connection instances (singleton pattern)
_mongo_client: Optional[AsyncIOMotorClient] = None
_mongo_database: Optional[AsyncIOMotorDatabase] = None


def get_database() -> AsyncIOMotorDatabase:
    """
    Get MongoDB database instance (singleton pattern)

    Returns:
        MongoDB database instance
    """
    global _mongo_client, _mongo_database

    if _mongo_database is not None:
        return _mongo_database

    settings = get_settings()
    _mongo_client = AsyncIOMotorClient(settings.mongo_uri, tz_aware=True)
    _mongo_database = _mongo_client[settings.mongo_database_name]
    logger.info(f"MongoDB client created for database {settings.mongo_database_name}")
    return _mongo_database


def get_asset_collection() -> AsyncIOMotorCollection:
    """
    Get assets collection from MongoDB

    Returns:
        MongoDB collection for asset records
    """
    return get_database()[ASSET_COLLECTION]


def get_job_collection() -> AsyncIOMotorCollection:
    """
    Get processing jobs collection from MongoDB

    Returns:
        MongoDB collection backing the job queue
    """
    return get_database()[JOB_COLLECTION]


def close_database() -> None:
    """Close the shared MongoDB client (call on application shutdown)."""
    global _mongo_client, _mongo_database

    if _mongo_client is not None:
        _mongo_client.close()
        logger.info("MongoDB client closed")
    _mongo_client = None
    _mongo_database = None
