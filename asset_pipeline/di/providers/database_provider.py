from typing import TYPE_CHECKING
from ...infrastructure.db.mongo_connection import get_asset_collection, get_job_collection

if TYPE_CHECKING:
    from ..base_container import BaseContainer


class DatabaseProvider:
    """Centralized database connection provider - single source of truth for all DB connections"""

    @staticmethod
    def register(container: "BaseContainer") -> None:
        """
        Register the collections as factories so the Mongo client is only
        created when a repository that needs it is built.
        """
        container.register_factory("asset_collection", get_asset_collection)
        container.register_factory("job_collection", get_job_collection)
