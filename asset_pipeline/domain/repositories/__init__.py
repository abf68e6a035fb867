from .asset_repository import AssetRepository
from .job_repository import JobRepository

__all__ = ["AssetRepository", "JobRepository"]
