"""
Pytest configuration and fixtures.

Every vendor is replaced by a scripted in-process fake, so no test touches the
network or needs credentials.
"""

import io
import threading
from typing import Any, List, Optional

import pytest
from PIL import Image

from tiered_routing.llm.provider_registry import ProviderRegistry
from tiered_routing.llm.providers.base_provider import (
    OcrExtractor,
    TextGenerator,
    VisionGenerator,
)
from tiered_routing.metrics.metrics_recorder import MetricsRecorder
from tiered_routing.models.data_structures import AdapterReply, ProviderRequest
from tiered_routing.routing.routing_engine import RoutingEngine
from tiered_routing.services.analysis_service import AnalysisService


class _Script:
    """Scripted replies: an AdapterReply, a string, an exception or a callable."""

    def __init__(self, replies: List[Any]):
        self.replies = list(replies)
        self.calls: List[Any] = []
        self._lock = threading.Lock()

    def next(self, *call_args: Any) -> AdapterReply:
        with self._lock:
            self.calls.append(call_args)
            reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if callable(reply) and not isinstance(reply, AdapterReply):
            reply = reply(*call_args)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, str):
            return AdapterReply(content=reply)
        return reply


class FakeTextProvider(TextGenerator):
    """Text-only fake adapter for one vendor."""

    def __init__(self, vendor: str, *replies: Any, configured: bool = True):
        super().__init__(
            api_key="test-key" if configured else None,
            credential_env=f"{vendor.upper()}_API_KEY",
        )
        self.vendor = vendor
        self.script = _Script(list(replies) or ['{"ok": true}'])

    @property
    def calls(self) -> List[Any]:
        return self.script.calls

    def generate_text(self, request: ProviderRequest, model: str) -> AdapterReply:
        return self.script.next(request, model)


class FakeVisionProvider(FakeTextProvider, VisionGenerator):
    """Text and vision fake adapter."""

    def generate_vision(self, request: ProviderRequest, model: str) -> AdapterReply:
        return self.script.next(request, model)


class FakeOcrProvider(OcrExtractor):
    """OCR fake adapter; replies default to a fixed confidence of 0.9."""

    def __init__(self, vendor: str, *replies: Any, configured: bool = True):
        super().__init__(
            api_key="test-key" if configured else None,
            credential_env=f"{vendor.upper()}_KEY",
        )
        self.vendor = vendor
        self.script = _Script(list(replies) or [AdapterReply("text", confidence=0.9)])

    @property
    def calls(self) -> List[Any]:
        return self.script.calls

    def extract(self, image: bytes, method: str, quality_level: str) -> AdapterReply:
        return self.script.next(image, method, quality_level)


def make_registry(*adapters) -> ProviderRegistry:
    registry = ProviderRegistry()
    for adapter in adapters:
        registry.register(adapter)
    return registry


@pytest.fixture(scope="function")
def recorder():
    """In-memory metrics recorder."""
    recorder = MetricsRecorder()
    yield recorder
    recorder.close()


@pytest.fixture(scope="function")
def make_engine(recorder):
    """Factory building a RoutingEngine over the given fake adapters."""
    engines: List[RoutingEngine] = []

    def _make(*adapters, attempt_timeout: float = 5.0, tiers=None) -> RoutingEngine:
        engine = RoutingEngine(
            make_registry(*adapters),
            recorder,
            tiers=tiers,
            attempt_timeout=attempt_timeout,
        )
        engines.append(engine)
        return engine

    yield _make

    for engine in engines:
        engine.close()


@pytest.fixture(scope="function")
def make_service(make_engine):
    """Factory building an AnalysisService over the given fake adapters."""

    def _make(*adapters, local_extractor=None, max_parallel: int = 4) -> AnalysisService:
        return AnalysisService(
            make_engine(*adapters),
            local_extractor=local_extractor,
            max_parallel=max_parallel,
        )

    return _make


@pytest.fixture(scope="function")
def png_bytes() -> bytes:
    """Small white PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (64, 32), "white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def clear_vendor_env(monkeypatch):
    """Remove real vendor credentials from the test environment."""
    for name in (
        "OPENAI_API_KEY",
        "GOOGLE_API_KEY",
        "MISTRAL_API_KEY",
        "OPENROUTER_API_KEY",
        "ANTHROPIC_API_KEY",
        "AZURE_OPENAI_API_KEY",
        "AZURE_OPENAI_ENDPOINT",
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_REGION",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_text():
    """FakeTextProvider class, e.g. ``fake_text("google", RuntimeError("boom"))``."""
    return FakeTextProvider


@pytest.fixture
def fake_vision():
    return FakeVisionProvider


@pytest.fixture
def fake_ocr():
    return FakeOcrProvider


# Markers for different test categories
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line(
        "markers", "integration: Integration tests for multiple components"
    )

