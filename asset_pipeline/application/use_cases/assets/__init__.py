from .submit_asset import SubmitAssetForAnalysisUseCase
from .get_asset import GetAssetUseCase

__all__ = ["SubmitAssetForAnalysisUseCase", "GetAssetUseCase"]
