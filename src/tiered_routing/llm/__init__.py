"""
Vendor adapters, adapter registry and prompt library.

Import the registry from ``tiered_routing.llm.provider_registry``; it pulls in
the OCR adapters, which themselves depend on this package.
"""

from .providers.base_provider import (
    OcrExtractor,
    ProviderAdapter,
    TextGenerator,
    VisionGenerator,
)

__all__ = ["OcrExtractor", "ProviderAdapter", "TextGenerator", "VisionGenerator"]
