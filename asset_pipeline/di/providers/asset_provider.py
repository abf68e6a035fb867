from typing import TYPE_CHECKING
from ...domain.repositories.asset_repository import AssetRepository
from ...application.queue.job_queue import JobQueue
from ...application.use_cases.assets.submit_asset import SubmitAssetForAnalysisUseCase
from ...application.use_cases.assets.get_asset import GetAssetUseCase

if TYPE_CHECKING:
    from ..base_container import BaseContainer


class AssetProvider:
    """Asset use case provider - use cases are created on-demand via factories"""

    @staticmethod
    def register(container: "BaseContainer") -> None:
        container.register_factory(
            SubmitAssetForAnalysisUseCase,
            lambda: SubmitAssetForAnalysisUseCase(
                asset_repository=container.get(AssetRepository),
                job_queue=container.get(JobQueue),
            ),
        )

        container.register_factory(
            GetAssetUseCase,
            lambda: GetAssetUseCase(asset_repository=container.get(AssetRepository)),
        )
