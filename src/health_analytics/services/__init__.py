"""Services that tie the analysis modules together."""

from .analysis import AnalysisCache, AnalysisResult, AnalysisService

__all__ = [
    "AnalysisCache",
    "AnalysisResult",
    "AnalysisService",
]
