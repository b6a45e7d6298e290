"""
Caller-facing analysis services.
"""

from .analysis_service import AnalysisService

__all__ = ["AnalysisService"]
