"""
OCR adapters backed by vision-capable language models.

Each OCR vendor wraps a vision generator, picks a model by the tier's OCR
quality level and reports a fixed confidence per quality level, since vision
models do not self-report one.
"""

import logging
from typing import Dict, Optional

from ...llm.prompt_library import get_ocr_prompt
from ...llm.providers.azure_provider import AzureOpenAIProvider
from ...llm.providers.base_provider import OcrExtractor, VisionGenerator
from ...llm.providers.google_provider import GoogleProvider
from ...llm.providers.openai_provider import OpenAIProvider
from ...models.data_structures import AdapterReply, ProviderRequest
from ...utils.error_handlers import OCRError

logger = logging.getLogger(__name__)

HIGH_QUALITY = "high"


class VisionOcrAdapter(OcrExtractor):
    """
    Base class for OCR through a vision model.

    Subclasses set ``vendor``, the models and confidences per quality level,
    and the output size.
    """

    models: Dict[str, str] = {}
    confidences: Dict[str, float] = {}
    default_quality = "low"
    max_tokens = 1000

    def __init__(self, generator: VisionGenerator) -> None:
        super().__init__(api_key=generator.api_key, credential_env=generator.credential_env)
        self.generator = generator

    def is_configured(self) -> bool:
        return self.generator.is_configured()

    def unconfigured_reason(self) -> Optional[str]:
        return self.generator.unconfigured_reason()

    def _level(self, quality_level: str) -> str:
        return HIGH_QUALITY if quality_level == HIGH_QUALITY else self.default_quality

    def model_for(self, quality_level: str) -> str:
        return self.models[self._level(quality_level)]

    def confidence_for(self, quality_level: str) -> float:
        return self.confidences[self._level(quality_level)]

    def extract(self, image: bytes, method: str, quality_level: str) -> AdapterReply:
        request = ProviderRequest.vision(
            get_ocr_prompt(method), image, max_tokens=self.max_tokens
        )
        model = self.model_for(quality_level)
        try:
            reply = self.generator.generate_vision(request, model)
        except Exception as e:
            raise OCRError(
                message=f"{self.vendor} extraction failed: {e}",
                ocr_engine=self.vendor,
                original_error=e,
            ) from e

        return AdapterReply(
            content=reply.content.strip(),
            confidence=self.confidence_for(quality_level),
        )

    def close(self) -> None:
        self.generator.close()


class TechVisionOcr(VisionOcrAdapter):
    """Budget OCR on a small OpenAI vision model."""

    vendor = "techvision"
    models = {"low": "gpt-4o-mini", HIGH_QUALITY: "gpt-4o-mini"}
    confidences = {"low": 0.75, HIGH_QUALITY: 0.75}
    max_tokens = 500

    def __init__(self, generator: Optional[OpenAIProvider] = None, **kwargs) -> None:
        super().__init__(generator or OpenAIProvider(**kwargs))


class GoogleVisionOcr(VisionOcrAdapter):
    """OCR on Gemini; the pro model for high quality tiers."""

    vendor = "google-vision"
    models = {"low": "gemini-1.5-flash", HIGH_QUALITY: "gemini-1.5-pro"}
    confidences = {"low": 0.85, HIGH_QUALITY: 0.95}

    def __init__(self, generator: Optional[GoogleProvider] = None, **kwargs) -> None:
        super().__init__(generator or GoogleProvider(**kwargs))


class AzureVisionOcr(VisionOcrAdapter):
    """OCR on Azure OpenAI deployments."""

    vendor = "azure-vision"
    models = {"low": "gpt-4o-mini", HIGH_QUALITY: "gpt-4o"}
    confidences = {"low": 0.82, HIGH_QUALITY: 0.92}

    def __init__(self, generator: Optional[AzureOpenAIProvider] = None, **kwargs) -> None:
        super().__init__(generator or AzureOpenAIProvider(**kwargs))
