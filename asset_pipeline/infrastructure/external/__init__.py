"""External service clients for communicating with external systems"""

from .analysis_client import AnalysisClient, parse_analysis_response

__all__ = [
    "AnalysisClient",
    "parse_analysis_response",
]
