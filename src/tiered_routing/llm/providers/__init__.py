"""
Text and vision vendor adapters.
"""

from .anthropic_provider import AnthropicProvider
from .azure_provider import AzureOpenAIProvider
from .base_provider import (
    OcrExtractor,
    ProviderAdapter,
    TextGenerator,
    VisionGenerator,
    supports_vision,
)
from .google_provider import GoogleProvider
from .meta_provider import MetaProvider
from .mistral_provider import MistralProvider
from .openai_provider import OpenAICompatibleProvider, OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "AzureOpenAIProvider",
    "GoogleProvider",
    "MetaProvider",
    "MistralProvider",
    "OpenAICompatibleProvider",
    "OpenAIProvider",
    "OcrExtractor",
    "ProviderAdapter",
    "TextGenerator",
    "VisionGenerator",
    "supports_vision",
]
