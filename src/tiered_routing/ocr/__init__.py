"""
OCR adapters and the local fallback extractor.
"""

from .local_extractor import LOCAL_PROVIDER, LocalOcrExtractor

__all__ = ["LOCAL_PROVIDER", "LocalOcrExtractor"]
