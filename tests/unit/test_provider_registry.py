"""
Unit tests for the provider registry and factory.
"""

import pytest

from tiered_routing.llm.provider_registry import ProviderFactory, ProviderRegistry
from tiered_routing.llm.providers.base_provider import (
    OcrExtractor,
    TextGenerator,
    VisionGenerator,
    detect_image_mime,
)
from tiered_routing.llm.providers.meta_provider import MetaProvider
from tiered_routing.llm.providers.openai_provider import OpenAIProvider
from tiered_routing.models.data_structures import ProviderRequest
from tiered_routing.utils.config_loader import Config
from tiered_routing.utils.error_handlers import ProviderNotConfiguredError

MODEL_VENDORS = {"openai", "google", "mistral", "meta", "anthropic"}
OCR_VENDORS = {"techvision", "google-vision", "azure-vision", "aws-textract"}


@pytest.fixture
def config():
    return Config.default()


@pytest.mark.unit
class TestProviderRegistryFromConfig:
    """Tests for building the registry from configuration."""

    def test_registers_every_vendor(self, config):
        registry = ProviderRegistry.from_config(config)

        assert set(ProviderFactory.vendors()) == MODEL_VENDORS | OCR_VENDORS
        assert len(registry) == len(MODEL_VENDORS | OCR_VENDORS)
        for vendor in MODEL_VENDORS | OCR_VENDORS:
            assert vendor in registry

    def test_nothing_configured_without_env(self, config):
        status = ProviderRegistry.from_config(config).get_provider_status()

        assert status["openai"] == {
            "available": False,
            "reason": "OPENAI_API_KEY not configured",
        }
        assert status["meta"]["reason"] == "OPENROUTER_API_KEY not configured"
        assert status["aws-textract"]["reason"] == "AWS_ACCESS_KEY_ID not configured"
        assert not any(entry["available"] for entry in status.values())

    def test_configured_from_env(self, config, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test-0123456789")
        monkeypatch.setenv("AZURE_OPENAI_API_KEY", "azure-key")
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIA")

        status = ProviderRegistry.from_config(config).get_provider_status()

        assert status["openai"] == {"available": True, "reason": None}
        assert status["techvision"]["available"] is True
        assert status["azure-vision"]["reason"] == "AZURE_OPENAI_ENDPOINT not configured"
        assert status["aws-textract"]["reason"] == "AWS_SECRET_ACCESS_KEY not configured"

    def test_blank_key_is_unconfigured(self, config, monkeypatch):
        monkeypatch.setenv("MISTRAL_API_KEY", "   ")

        registry = ProviderRegistry.from_config(config)

        assert not registry.get("mistral").is_configured()

    def test_unknown_vendor(self, config):
        with pytest.raises(ValueError):
            ProviderFactory.create("cohere", config)


@pytest.mark.unit
class TestCapabilities:
    """Tests for capability interfaces of the built adapters."""

    def test_capabilities(self, config):
        registry = ProviderRegistry.from_config(config)

        assert isinstance(registry.get("openai"), VisionGenerator)
        assert isinstance(registry.get("google"), VisionGenerator)
        assert isinstance(registry.get("mistral"), TextGenerator)
        assert not isinstance(registry.get("meta"), VisionGenerator)
        for vendor in OCR_VENDORS:
            assert isinstance(registry.get(vendor), OcrExtractor)

    def test_meta_defaults_to_openrouter(self):
        provider = MetaProvider(api_key="key")
        assert provider.base_url == "https://openrouter.ai/api/v1"
        assert provider.vendor == "meta"

    def test_unconfigured_adapter_refuses_calls(self):
        provider = OpenAIProvider(api_key=None)

        with pytest.raises(ProviderNotConfiguredError):
            provider.generate_text(ProviderRequest.text("hi"), "gpt-4o-mini")

    def test_register_replaces_vendor(self):
        registry = ProviderRegistry()
        first = OpenAIProvider(api_key="a")
        second = OpenAIProvider(api_key="b")

        registry.register(first)
        registry.register(second)

        assert registry.get("openai") is second
        assert len(registry) == 1


@pytest.mark.unit
class TestDetectImageMime:
    """Tests for detect_image_mime."""

    @pytest.mark.parametrize(
        "header, expected",
        [
            (b"\x89PNG\r\n", "image/png"),
            (b"\xff\xd8\xff\xe0", "image/jpeg"),
            (b"GIF89a", "image/gif"),
            (b"????", "image/jpeg"),
            (None, "image/jpeg"),
        ],
    )
    def test_detect(self, header, expected):
        assert detect_image_mime(header) == expected
