"""
Unit tests for vendor adapters with their SDK clients replaced by fakes.
"""

from types import SimpleNamespace

import pytest

from tiered_routing.llm.providers.meta_provider import MetaProvider
from tiered_routing.llm.providers.mistral_provider import MistralProvider
from tiered_routing.llm.providers.openai_provider import OpenAIProvider
from tiered_routing.models.data_structures import AdapterReply, ProviderRequest
from tiered_routing.ocr.providers.textract import TextractOcr
from tiered_routing.ocr.providers.vision_ocr import (
    AzureVisionOcr,
    GoogleVisionOcr,
    TechVisionOcr,
)
from tiered_routing.utils.error_handlers import OCRError, ProviderError


def chat_response(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeCompletions:
    """Records chat completion calls and returns a canned response or raises."""

    def __init__(self, result):
        self.result = result
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    complete = create


def fake_openai_client(result):
    completions = FakeCompletions(result)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


@pytest.mark.unit
class TestOpenAIProvider:
    """Tests for OpenAIProvider with a fake client."""

    def test_text_uses_json_mode(self):
        provider = OpenAIProvider(api_key="sk-test")
        provider._client, completions = fake_openai_client(chat_response('{"a": 1}'))

        reply = provider.generate_text(
            ProviderRequest.text("prompt", system_prompt="system", max_tokens=256),
            "gpt-4o-mini",
        )

        assert reply.content == '{"a": 1}'
        call = completions.calls[0]
        assert call["model"] == "gpt-4o-mini"
        assert call["max_tokens"] == 256
        assert call["response_format"] == {"type": "json_object"}
        assert call["messages"][0] == {"role": "system", "content": "system"}

    def test_vision_sends_data_url(self, png_bytes):
        provider = OpenAIProvider(api_key="sk-test")
        provider._client, completions = fake_openai_client(chat_response("a receipt"))

        provider.generate_vision(ProviderRequest.vision("Describe", png_bytes), "gpt-4o")

        call = completions.calls[0]
        assert "response_format" not in call
        image_part = call["messages"][1]["content"][1]
        assert image_part["image_url"]["url"].startswith("data:image/png;base64,")

    def test_default_system_prompt(self):
        provider = OpenAIProvider(api_key="sk-test")
        provider._client, completions = fake_openai_client(chat_response("x"))

        provider.generate_text(ProviderRequest.text("prompt"), "gpt-4o-mini")

        assert completions.calls[0]["messages"][0]["content"] == "You are a helpful assistant."

    def test_sdk_error_wrapped(self):
        provider = OpenAIProvider(api_key="sk-test")
        provider._client, _ = fake_openai_client(RuntimeError("429 Too Many Requests"))

        with pytest.raises(ProviderError) as exc_info:
            provider.generate_text(ProviderRequest.text("prompt"), "gpt-4o-mini")

        assert exc_info.value.provider == "openai"
        assert exc_info.value.model == "gpt-4o-mini"

    def test_empty_choices(self):
        provider = OpenAIProvider(api_key="sk-test")
        provider._client, _ = fake_openai_client(SimpleNamespace(choices=[]))

        with pytest.raises(ProviderError):
            provider.generate_text(ProviderRequest.text("prompt"), "gpt-4o-mini")

    def test_meta_has_no_json_mode(self):
        provider = MetaProvider(api_key="or-test")
        provider._client, completions = fake_openai_client(chat_response("plain"))

        provider.generate_text(ProviderRequest.text("prompt"), "meta-llama/llama-3.1-8b-instruct")

        assert "response_format" not in completions.calls[0]


@pytest.mark.unit
class TestMistralProvider:
    """Tests for MistralProvider with a fake client."""

    def test_generate_text(self):
        provider = MistralProvider(api_key="m-test")
        completions = FakeCompletions(chat_response('{"ok": true}'))
        provider._client = SimpleNamespace(chat=completions)

        reply = provider.generate_text(ProviderRequest.text("prompt"), "mistral-small-latest")

        assert reply.content == '{"ok": true}'
        assert completions.calls[0]["response_format"] == {"type": "json_object"}


class FakeVision:
    """Minimal vision generator stand-in for OCR adapters."""

    api_key = "key"
    credential_env = "KEY"

    def __init__(self, result):
        self.result = result
        self.calls = []

    def is_configured(self):
        return True

    def unconfigured_reason(self):
        return None

    def generate_vision(self, request, model):
        self.calls.append((request, model))
        if isinstance(self.result, Exception):
            raise self.result
        return AdapterReply(self.result)

    def close(self):
        pass


@pytest.mark.unit
class TestVisionOcr:
    """Tests for vision-model OCR adapters."""

    @pytest.mark.parametrize(
        "adapter_cls, quality, model, confidence",
        [
            (TechVisionOcr, "low", "gpt-4o-mini", 0.75),
            (GoogleVisionOcr, "medium", "gemini-1.5-flash", 0.85),
            (GoogleVisionOcr, "high", "gemini-1.5-pro", 0.95),
            (AzureVisionOcr, "low", "gpt-4o-mini", 0.82),
            (AzureVisionOcr, "high", "gpt-4o", 0.92),
        ],
    )
    def test_model_and_confidence(self, adapter_cls, quality, model, confidence, png_bytes):
        generator = FakeVision("  Invoice 42  ")
        adapter = adapter_cls(generator)

        reply = adapter.extract(png_bytes, "extract-title", quality)

        assert reply.content == "Invoice 42"
        assert reply.confidence == confidence
        assert generator.calls[0][1] == model

    def test_failure_wrapped_in_ocr_error(self, png_bytes):
        adapter = TechVisionOcr(FakeVision(RuntimeError("boom")))

        with pytest.raises(OCRError) as exc_info:
            adapter.extract(png_bytes, "extract-title", "low")

        assert exc_info.value.ocr_engine == "techvision"


class FakeTextract:
    def __init__(self, blocks):
        self.blocks = blocks
        self.calls = []

    def detect_document_text(self, Document):
        self.calls.append(Document)
        return {"Blocks": self.blocks}


@pytest.mark.unit
class TestTextractOcr:
    """Tests for TextractOcr with a fake boto3 client."""

    BLOCKS = [
        {"BlockType": "PAGE"},
        {"BlockType": "LINE", "Text": "Invoice 42", "Confidence": 99.0},
        {"BlockType": "WORD", "Text": "Invoice", "Confidence": 99.0},
        {"BlockType": "LINE", "Text": "ACME Corp", "Confidence": 95.0},
    ]

    def test_extract_text(self, png_bytes):
        adapter = TextractOcr(access_key="AKIA", secret_key="secret")
        adapter._client = FakeTextract(self.BLOCKS)

        reply = adapter.extract(png_bytes, "extract-content", "high")

        assert reply.content == "Invoice 42\nACME Corp"
        assert reply.confidence == pytest.approx(0.97)
        assert adapter._client.calls[0] == {"Bytes": png_bytes}

    def test_extract_title_first_line(self, png_bytes):
        adapter = TextractOcr(access_key="AKIA", secret_key="secret")
        adapter._client = FakeTextract(self.BLOCKS)

        reply = adapter.extract(png_bytes, "extract-title", "high")

        assert reply.content == "Invoice 42"
        assert reply.confidence == pytest.approx(0.99)

    def test_default_region(self):
        assert TextractOcr(access_key="a", secret_key="b").region == "us-east-1"
