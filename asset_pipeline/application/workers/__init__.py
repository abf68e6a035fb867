from .asset_processor import AssetProcessor, ProcessingResult
from .worker_pool import WorkerPool

__all__ = ["AssetProcessor", "ProcessingResult", "WorkerPool"]
