"""
Tiered Provider Routing Engine

Routes text, vision and OCR requests through a subscription tier's ordered
chain of AI vendors, with fallback, output repair and per-provider metrics.
"""

__version__ = "1.0.0"
__author__ = "Tiered Routing Team"

# Core exports
from .routing import CancellationToken, RoutingEngine
from .services import AnalysisService
from .models import ProviderRequest, ProviderResponse
from .tiers import resolve

__all__ = [
    "AnalysisService",
    "CancellationToken",
    "ProviderRequest",
    "ProviderResponse",
    "RoutingEngine",
    "resolve",
    "__version__",
]
