from typing import TYPE_CHECKING
from ...core.config import get_settings
from ...domain.repositories.asset_repository import AssetRepository
from ...domain.repositories.job_repository import JobRepository
from ...infrastructure.db.mongo_asset_repository import MongoAssetRepository
from ...infrastructure.db.mongo_job_repository import MongoJobRepository

if TYPE_CHECKING:
    from ..base_container import BaseContainer


class RepositoryProvider:
    """Repository registration provider - wires domain interfaces to infrastructure implementations"""

    @staticmethod
    def register(container: "BaseContainer") -> None:
        """Register Mongo repositories unless an implementation was supplied up front."""
        if not container.has(AssetRepository):
            container.register_singleton(
                AssetRepository,
                MongoAssetRepository(asset_collection=container.get("asset_collection")),
            )

        if not container.has(JobRepository):
            container.register_singleton(
                JobRepository,
                MongoJobRepository(
                    queue_name=get_settings().queue_name,
                    job_collection=container.get("job_collection"),
                ),
            )
