from .database_provider import DatabaseProvider
from .repository_provider import RepositoryProvider
from .pipeline_provider import PipelineProvider
from .asset_provider import AssetProvider


__all__ = [
    "DatabaseProvider",
    "RepositoryProvider",
    "PipelineProvider",
    "AssetProvider",
]
