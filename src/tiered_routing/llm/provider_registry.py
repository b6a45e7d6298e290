"""Registry of vendor adapters keyed by vendor name.

The registry is the only place that knows which adapter serves which vendor.
``ProviderRegistry.from_config`` reads credentials from the environment and
builds every known adapter; adapters whose credential is missing are still
registered, but report themselves unconfigured so the routing engine skips
them without invoking them.
"""

import logging
import os
from typing import Callable, Dict, Iterator, List, Optional

from ..ocr.providers.textract import TextractOcr
from ..ocr.providers.vision_ocr import AzureVisionOcr, GoogleVisionOcr, TechVisionOcr
from ..utils.config_loader import RouterConfig
from .providers.anthropic_provider import AnthropicProvider
from .providers.azure_provider import AzureOpenAIProvider
from .providers.base_provider import ProviderAdapter
from .providers.google_provider import GoogleProvider
from .providers.meta_provider import MetaProvider
from .providers.mistral_provider import MistralProvider
from .providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


def _env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


class ProviderFactory:
    """Build adapters from configuration and the process environment."""

    @staticmethod
    def _openai(config: RouterConfig) -> OpenAIProvider:
        return OpenAIProvider(
            api_key=_env(config.env_var("openai")),
            timeout=config.providers["client_timeout_seconds"],
            max_retries=config.providers["client_max_retries"],
            credential_env=config.env_var("openai"),
        )

    @staticmethod
    def _google(config: RouterConfig) -> GoogleProvider:
        return GoogleProvider(
            api_key=_env(config.env_var("google")),
            timeout=config.providers["client_timeout_seconds"],
            credential_env=config.env_var("google"),
        )

    @staticmethod
    def _azure(config: RouterConfig) -> AzureOpenAIProvider:
        return AzureOpenAIProvider(
            api_key=_env(config.env_var("azure_key")),
            endpoint=_env(config.env_var("azure_endpoint")),
            api_version=config.providers["azure_api_version"],
            timeout=config.providers["client_timeout_seconds"],
            max_retries=config.providers["client_max_retries"],
            credential_env=config.env_var("azure_key"),
            endpoint_env=config.env_var("azure_endpoint"),
        )

    _builders: Dict[str, Callable[[RouterConfig], ProviderAdapter]] = {
        "openai": lambda config: ProviderFactory._openai(config),
        "google": lambda config: ProviderFactory._google(config),
        "mistral": lambda config: MistralProvider(
            api_key=_env(config.env_var("mistral")),
            timeout=config.providers["client_timeout_seconds"],
            credential_env=config.env_var("mistral"),
        ),
        "meta": lambda config: MetaProvider(
            api_key=_env(config.env_var("meta")),
            base_url=config.providers.get("meta_base_url"),
            timeout=config.providers["client_timeout_seconds"],
            max_retries=config.providers["client_max_retries"],
            credential_env=config.env_var("meta"),
        ),
        "anthropic": lambda config: AnthropicProvider(
            api_key=_env(config.env_var("anthropic")),
            timeout=config.providers["client_timeout_seconds"],
            max_retries=config.providers["client_max_retries"],
            credential_env=config.env_var("anthropic"),
        ),
        "techvision": lambda config: TechVisionOcr(ProviderFactory._openai(config)),
        "google-vision": lambda config: GoogleVisionOcr(ProviderFactory._google(config)),
        "azure-vision": lambda config: AzureVisionOcr(ProviderFactory._azure(config)),
        "aws-textract": lambda config: TextractOcr(
            access_key=_env(config.env_var("aws_access_key")),
            secret_key=_env(config.env_var("aws_secret_key")),
            region=_env(config.env_var("aws_region")),
            credential_env=config.env_var("aws_access_key"),
            secret_env=config.env_var("aws_secret_key"),
        ),
    }

    @classmethod
    def vendors(cls) -> List[str]:
        return list(cls._builders)

    @classmethod
    def create(cls, vendor: str, config: RouterConfig) -> ProviderAdapter:
        """
        Build the adapter for a vendor.

        Raises:
            ValueError: If the vendor is unknown.
        """
        if vendor not in cls._builders:
            raise ValueError(f"Unknown provider: {vendor}")
        return cls._builders[vendor](config)


class ProviderRegistry:
    """
    Vendor name to adapter mapping.

    Example:
        >>> registry = ProviderRegistry()
        >>> registry.register(OpenAIProvider(api_key=None))
        >>> registry.get_provider_status()["openai"]
        {'available': False, 'reason': 'OPENAI_API_KEY not configured'}
    """

    def __init__(self) -> None:
        self._adapters: Dict[str, ProviderAdapter] = {}

    @classmethod
    def from_config(cls, config: RouterConfig) -> "ProviderRegistry":
        registry = cls()
        for vendor in ProviderFactory.vendors():
            registry.register(ProviderFactory.create(vendor, config))

        configured = [name for name, adapter in registry.items() if adapter.is_configured()]
        logger.info(
            f"Provider registry ready: {len(configured)}/{len(registry)} configured "
            f"({', '.join(configured) or 'none'})"
        )
        return registry

    def register(self, adapter: ProviderAdapter) -> None:
        if not adapter.vendor:
            raise ValueError(f"Adapter {adapter!r} has no vendor name")
        if adapter.vendor in self._adapters:
            logger.debug(f"Replacing adapter for {adapter.vendor}")
        self._adapters[adapter.vendor] = adapter

    def get(self, vendor: str) -> Optional[ProviderAdapter]:
        return self._adapters.get(vendor)

    def items(self) -> Iterator:
        return iter(self._adapters.items())

    def __contains__(self, vendor: object) -> bool:
        return vendor in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)

    def get_provider_status(self) -> Dict[str, Dict[str, Optional[object]]]:
        """
        Report configuration status per vendor.

        Reflects adapter configuration only, not live vendor health.

        Returns:
            Mapping of vendor name to ``{"available": bool, "reason": str|None}``.
        """
        return {
            vendor: {
                "available": adapter.is_configured(),
                "reason": adapter.unconfigured_reason(),
            }
            for vendor, adapter in self._adapters.items()
        }

    def close(self) -> None:
        for vendor, adapter in self._adapters.items():
            try:
                adapter.close()
            except Exception as e:
                logger.warning(f"Error closing {vendor} adapter: {e}")
