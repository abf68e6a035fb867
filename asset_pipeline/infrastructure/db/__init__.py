from .mongo_connection import get_database, get_asset_collection, get_job_collection, close_database
from .mongo_asset_repository import MongoAssetRepository
from .mongo_job_repository import MongoJobRepository

__all__ = [
    "get_database",
    "get_asset_collection",
    "get_job_collection",
    "close_database",
    "MongoAssetRepository",
    "MongoJobRepository",
]
