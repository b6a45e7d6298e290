"""
Capability interfaces for vendor adapters.

Every adapter is a narrow I/O boundary around one vendor: it turns a request
into raw content or raises. Adapters never retry and never fall back; chain
level fallback, timeouts and latency measurement belong to the routing engine.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from ...models.data_structures import AdapterReply, ProviderRequest
from ...utils.error_handlers import ProviderNotConfiguredError

logger = logging.getLogger(__name__)


class ProviderAdapter(ABC):
    """
    Base class for all vendor adapters.

    Attributes:
        vendor: Vendor name; the registry and metrics key.
        credential_env: Name of the environment variable holding the credential.
    """

    vendor: str = ""

    def __init__(self, api_key: Optional[str] = None, credential_env: str = "") -> None:
        self.api_key: Optional[str] = (api_key or "").strip() or None
        self.credential_env = credential_env

    def is_configured(self) -> bool:
        """Whether the adapter has what it needs to be invoked."""
        return self.api_key is not None

    def unconfigured_reason(self) -> Optional[str]:
        """Reason the adapter is unavailable, or None when configured."""
        if self.is_configured():
            return None
        return f"{self.credential_env or 'credential'} not configured"

    def _require_configured(self) -> None:
        if not self.is_configured():
            raise ProviderNotConfiguredError(self.vendor, self.unconfigured_reason())

    def close(self) -> None:
        """Release client resources. Safe to call more than once."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(vendor={self.vendor!r}, "
            f"api_key={'***' if self.api_key else None})"
        )


class TextGenerator(ProviderAdapter):
    """Adapter able to complete a text prompt."""

    @abstractmethod
    def generate_text(self, request: ProviderRequest, model: str) -> AdapterReply:
        """
        Complete a text request.

        Args:
            request: Request carrying prompt, system prompt and max tokens.
            model: Concrete vendor model name.

        Returns:
            AdapterReply with the raw content.

        Raises:
            ProviderError: If the vendor call fails.
        """


class VisionGenerator(ProviderAdapter):
    """Adapter able to complete a prompt about an image."""

    @abstractmethod
    def generate_vision(self, request: ProviderRequest, model: str) -> AdapterReply:
        """
        Complete a vision request.

        Args:
            request: Request carrying prompt, system prompt and base64 image.
            model: Concrete vendor model name.

        Returns:
            AdapterReply with the raw content.

        Raises:
            ProviderError: If the vendor call fails.
        """


class OcrExtractor(ProviderAdapter):
    """Adapter able to extract text from an image."""

    @abstractmethod
    def extract(self, image: bytes, method: str, quality_level: str) -> AdapterReply:
        """
        Extract text from an image.

        Args:
            image: Raw image bytes.
            method: OCR method (extract-title, extract-content, ...).
            quality_level: Tier OCR quality level (low, medium, high).

        Returns:
            AdapterReply whose content is the extracted text and whose
            confidence is set.

        Raises:
            OCRError: If the vendor call fails.
        """


def supports_vision(adapter: ProviderAdapter) -> bool:
    return isinstance(adapter, VisionGenerator)


# Image format detection via magic numbers
IMAGE_SIGNATURES = {
    b"\x89PNG": "image/png",
    b"\xff\xd8\xff": "image/jpeg",
    b"RIFF": "image/webp",
    b"GIF87a": "image/gif",
    b"GIF89a": "image/gif",
}


def detect_image_mime(image: Optional[bytes], default: str = "image/jpeg") -> str:
    """Guess an image MIME type from its leading bytes."""
    if image:
        for signature, mime in IMAGE_SIGNATURES.items():
            if image.startswith(signature):
                return mime
    return default
