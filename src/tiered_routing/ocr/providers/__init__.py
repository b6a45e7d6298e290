"""
Remote OCR adapters.
"""

from .textract import TextractOcr
from .vision_ocr import AzureVisionOcr, GoogleVisionOcr, TechVisionOcr, VisionOcrAdapter

__all__ = [
    "AzureVisionOcr",
    "GoogleVisionOcr",
    "TechVisionOcr",
    "TextractOcr",
    "VisionOcrAdapter",
]
