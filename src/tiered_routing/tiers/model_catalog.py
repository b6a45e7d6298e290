"""
Catalog of logical model and OCR provider identifiers.

Tier configurations name models and OCR providers by logical identifier
(``gpt-5-nano``, ``google-vision-lite``...). This module maps each identifier
to the vendor that serves it and, for models, the concrete API model name the
vendor adapter is called with.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ModelInfo:
    """Logical model entry.

    Attributes:
        id: Logical model identifier used in tier chains.
        name: Display name.
        vendor: Vendor name; also the metrics key and the registry key.
        api_model: Concrete model name sent to the vendor API.
        description: Short description for admin listings.
        cost_per_1k_tokens: Indicative price in USD.
        capabilities: Supported content kinds ("text", "vision").
    """

    id: str
    name: str
    vendor: str
    api_model: str
    description: str
    cost_per_1k_tokens: float
    capabilities: Tuple[str, ...] = ("text",)

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.vendor,
            "description": self.description,
            "cost_per_1k_tokens": self.cost_per_1k_tokens,
            "capabilities": list(self.capabilities),
        }


@dataclass(frozen=True)
class OcrProviderInfo:
    """Logical OCR provider entry.

    Attributes:
        id: OCR provider identifier used in tier OCR chains.
        name: Display name.
        vendor: Vendor name; also the metrics key and the registry key.
        description: Short description for admin listings.
        cost_per_page: Indicative price in USD.
        quality_level: Nominal quality (low/medium/high).
        tiers: Plan names the provider is offered on.
    """

    id: str
    name: str
    vendor: str
    description: str
    cost_per_page: float
    quality_level: str
    tiers: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "provider": self.vendor,
            "description": self.description,
            "cost_per_page": self.cost_per_page,
            "quality_level": self.quality_level,
            "tiers": list(self.tiers),
        }


# GPT-5 and Gemini 2.5 identifiers are served by the closest generally
# available API model until the vendors publish those names.
AI_MODELS: Dict[str, ModelInfo] = {
    "gpt-5-nano": ModelInfo(
        id="gpt-5-nano",
        name="GPT-5 Nano",
        vendor="openai",
        api_model="gpt-4o-mini",
        description="Efficient model for simple tasks",
        cost_per_1k_tokens=0.0001,
        capabilities=("text",),
    ),
    "gpt-5.2": ModelInfo(
        id="gpt-5.2",
        name="GPT-5.2",
        vendor="openai",
        api_model="gpt-4o",
        description="Advanced reasoning for complex folder planning",
        cost_per_1k_tokens=0.002,
        capabilities=("text", "vision"),
    ),
    "gemini-2.5-flash": ModelInfo(
        id="gemini-2.5-flash",
        name="Gemini 2.5 Flash",
        vendor="google",
        api_model="gemini-1.5-flash",
        description="Fast multimodal backup model",
        cost_per_1k_tokens=0.0005,
        capabilities=("text", "vision"),
    ),
    "mistral-small-2025": ModelInfo(
        id="mistral-small-2025",
        name="Mistral Small 2025",
        vendor="mistral",
        api_model="mistral-small-latest",
        description="Cheap structured reasoning and validation",
        cost_per_1k_tokens=0.0002,
        capabilities=("text",),
    ),
    "llama-3.1-small": ModelInfo(
        id="llama-3.1-small",
        name="Llama 3.1 Small",
        vendor="meta",
        api_model="meta-llama/llama-3.1-8b-instruct",
        description="Extra fallback and routing model",
        cost_per_1k_tokens=0.0001,
        capabilities=("text",),
    ),
    "claude-3.5-sonnet": ModelInfo(
        id="claude-3.5-sonnet",
        name="Claude 3.5 Sonnet",
        vendor="anthropic",
        api_model="claude-3-5-sonnet-20241022",
        description="Optional high-quality model for configured overrides",
        cost_per_1k_tokens=0.003,
        capabilities=("text", "vision"),
    ),
}


OCR_PROVIDERS: Dict[str, OcrProviderInfo] = {
    "techvision": OcrProviderInfo(
        id="techvision",
        name="TechVision",
        vendor="techvision",
        description="Budget OCR for clean text",
        cost_per_page=0.0005,
        quality_level="low",
        tiers=("free", "basic", "pro", "unlimited"),
    ),
    "google-vision-lite": OcrProviderInfo(
        id="google-vision-lite",
        name="Google Vision (Lite)",
        vendor="google-vision",
        description="Rate-limited Google OCR for free tier",
        cost_per_page=0.001,
        quality_level="low",
        tiers=("free",),
    ),
    "google-vision-standard": OcrProviderInfo(
        id="google-vision-standard",
        name="Google Vision (Standard)",
        vendor="google-vision",
        description="Standard Google vision OCR",
        cost_per_page=0.0015,
        quality_level="medium",
        tiers=("basic",),
    ),
    "google-vision-advanced": OcrProviderInfo(
        id="google-vision-advanced",
        name="Google Vision (Advanced)",
        vendor="google-vision",
        description="Full-featured Google document OCR",
        cost_per_page=0.002,
        quality_level="high",
        tiers=("pro", "unlimited"),
    ),
    "azure-vision-lite": OcrProviderInfo(
        id="azure-vision-lite",
        name="Azure Vision (Lite)",
        vendor="azure-vision",
        description="Rate-limited Azure OCR for free tier",
        cost_per_page=0.001,
        quality_level="low",
        tiers=("free",),
    ),
    "azure-vision-standard": OcrProviderInfo(
        id="azure-vision-standard",
        name="Azure Vision (Standard)",
        vendor="azure-vision",
        description="Standard Azure vision OCR",
        cost_per_page=0.0015,
        quality_level="medium",
        tiers=("basic",),
    ),
    "azure-vision-advanced": OcrProviderInfo(
        id="azure-vision-advanced",
        name="Azure Vision (Advanced)",
        vendor="azure-vision",
        description="Azure read with handwriting support",
        cost_per_page=0.002,
        quality_level="high",
        tiers=("pro", "unlimited"),
    ),
    "aws-textract": OcrProviderInfo(
        id="aws-textract",
        name="AWS Textract",
        vendor="aws-textract",
        description="Best for forms and tables",
        cost_per_page=0.0025,
        quality_level="high",
        tiers=("pro", "unlimited"),
    ),
}


def get_model_info(model_id: str) -> Optional[ModelInfo]:
    """Return the catalog entry for a logical model id, or None if unknown."""
    return AI_MODELS.get(model_id)


def get_ocr_provider_info(ocr_id: str) -> Optional[OcrProviderInfo]:
    """Return the catalog entry for an OCR provider id, or None if unknown."""
    return OCR_PROVIDERS.get(ocr_id)


def list_models() -> List[Dict[str, object]]:
    """List every catalog model as a plain dictionary."""
    return [info.to_dict() for info in AI_MODELS.values()]


def list_ocr_providers() -> List[Dict[str, object]]:
    """List every OCR catalog entry as a plain dictionary."""
    return [info.to_dict() for info in OCR_PROVIDERS.values()]
