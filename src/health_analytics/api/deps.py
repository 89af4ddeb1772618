"""Dependency injection for API routes."""

from functools import lru_cache

from ..config import get_settings
from ..services.analysis import AnalysisService


@lru_cache
def get_analysis_service() -> AnalysisService:
    """Get the process-wide analysis service instance."""
    return AnalysisService(settings=get_settings())
