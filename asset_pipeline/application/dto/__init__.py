from .asset_dto import AnalyzeAssetRequest, AnalyzeAssetResponse, AssetResponse, QueueStatusResponse

__all__ = ["AnalyzeAssetRequest", "AnalyzeAssetResponse", "AssetResponse", "QueueStatusResponse"]
