from .asset import Asset, AssetCategory, AssetImages, AssetStatus, ImageRef, PROTECTED_STATUSES
from .analysis import AnalysisResult, FieldPrediction
from .job import BackoffPolicy, FailureOutcome, Job, JobOptions, JobPayload, JobState, QueueCounts
from .events import CompletionEvent, FailureEvent, SuccessEvent
from .connection import Connection, room_for

__all__ = [
    "Asset",
    "AssetCategory",
    "AssetImages",
    "AssetStatus",
    "ImageRef",
    "PROTECTED_STATUSES",
    "AnalysisResult",
    "FieldPrediction",
    "BackoffPolicy",
    "FailureOutcome",
    "Job",
    "JobOptions",
    "JobPayload",
    "JobState",
    "QueueCounts",
    "CompletionEvent",
    "FailureEvent",
    "SuccessEvent",
    "Connection",
    "room_for",
]
