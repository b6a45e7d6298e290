"""
Integration tests for AnalysisService over the real routing engine.

Only the vendor adapters are faked; tier resolution, routing, repair, metrics
recording and the service composition all run for real.
"""

import base64
import json
import threading
import time

import pytest
from PIL import Image

from tiered_routing.models.data_structures import AdapterReply, FileDescriptor, OcrResult
from tiered_routing.ocr.local_extractor import LOCAL_PROVIDER, LocalOcrExtractor
from tiered_routing.services.analysis_service import AnalysisService
from tiered_routing.utils.config_loader import Config


class StubLocalExtractor:
    """Local extractor stand-in returning a fixed result."""

    def __init__(self):
        self.calls = []

    def extract(self, image, method="smart-naming"):
        self.calls.append(method)
        return OcrResult("Local Title", 0.6, method, LOCAL_PROVIDER)


@pytest.mark.integration
class TestSuggestedName:
    """End-to-end name suggestion."""

    def test_fallback_then_repair_records_both_attempts(self, make_service, fake_text):
        """Free plan, stage b: first candidate throws, second returns prose."""
        google = fake_text("google", RuntimeError("503 Service Unavailable"))
        openai = fake_text("openai", "not json")
        service = make_service(google, openai)

        result = service.generate_suggested_name("Quarterly figures", "scan.pdf", "pdf", "free")

        assert result.suggested_name == "not_json"
        assert result.confidence == 0.4
        assert result.provider == "openai"

        rows = {row.provider_name: row for row in service.list_metrics()}
        assert set(rows) == {"google", "openai"}
        assert (rows["google"].request_count, rows["google"].error_count) == (1, 1)
        assert (rows["openai"].request_count, rows["openai"].success_count) == (1, 1)

    def test_valid_json_reply(self, make_service, fake_text):
        reply = json.dumps(
            {"suggestedName": "acme_invoice_2024", "confidence": 0.9, "reasoning": "Invoice"}
        )
        service = make_service(fake_text("google", reply))

        result = service.generate_suggested_name("Invoice ACME", "scan.pdf", "pdf")

        assert result.suggested_name == "acme_invoice_2024"
        assert result.confidence == 0.9
        assert result.provider == "google"

    def test_total_failure_returns_original_stem(self, make_service, fake_text):
        service = make_service(fake_text("google", RuntimeError("boom")))

        result = service.generate_suggested_name("text", "my report.final.docx", "docx")

        assert result.suggested_name == "my report.final"
        assert result.provider == "fallback"
        assert result.confidence == 0.3
        assert result.reasoning == "AI processing unavailable, using original filename"

    def test_no_vendor_configured(self, make_service):
        result = make_service().generate_suggested_name("text", "a.txt", "txt")

        assert result.suggested_name == "a"
        assert result.provider == "fallback"

    def test_custom_instructions_reach_prompt(self, make_service, fake_text):
        google = fake_text("google", '{"suggestedName": "x"}')
        service = make_service(google)

        service.generate_suggested_name(
            "text", "a.txt", "txt", custom_instructions={"namingStyle": "kebab-case"}
        )

        request, _ = google.calls[0]
        assert "- Style: kebab-case" in request.prompt
        assert request.system_prompt.startswith("You are a file naming expert")

    def test_batch_is_sequential(self, make_service, fake_text):
        """Test that batch naming never overlaps two routed requests."""
        active = []
        overlap = []
        lock = threading.Lock()

        def slow_reply(request, model):
            with lock:
                active.append(1)
                if len(active) > 1:
                    overlap.append(True)
            time.sleep(0.01)
            with lock:
                active.pop()
            return AdapterReply('{"suggestedName": "named"}')

        service = make_service(fake_text("google", slow_reply))
        files = [FileDescriptor(f"file_{i}.txt", "txt", content="c") for i in range(5)]

        results = service.suggest_names_batch(files)

        assert [r.suggested_name for r in results] == ["named"] * 5
        assert overlap == []


@pytest.mark.integration
class TestExtractTextFromImage:
    """OCR composition with the local floor."""

    def test_remote_ocr_success(self, make_service, fake_ocr, png_bytes):
        local = StubLocalExtractor()
        service = make_service(
            fake_ocr("techvision", AdapterReply("Invoice 42", confidence=0.75)),
            local_extractor=local,
        )

        result = service.extract_text_from_image(png_bytes, "extract-title", "free")

        assert result.extracted_text == "Invoice 42"
        assert result.confidence == 0.75
        assert result.provider == "techvision"
        assert local.calls == []

    def test_falls_back_to_local_when_all_fail(self, make_service, fake_ocr, png_bytes):
        local = StubLocalExtractor()
        service = make_service(fake_ocr("techvision", RuntimeError("quota")), local_extractor=local)

        result = service.extract_text_from_image(png_bytes, "extract-title", "free")

        assert result.provider == LOCAL_PROVIDER
        assert result.extracted_text == "Local Title"
        assert local.calls == ["extract-title"]

    def test_falls_back_to_local_without_credentials(self, make_service, png_bytes):
        local = StubLocalExtractor()
        service = make_service(local_extractor=local)

        result = service.extract_text_from_image(png_bytes)

        assert result.provider == LOCAL_PROVIDER
        assert service.list_metrics() == []

    def test_oversized_image_still_returns_result(self, make_service, monkeypatch, png_bytes):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        service = make_service(local_extractor=LocalOcrExtractor())

        result = service.extract_text_from_image(png_bytes, "extract-title")

        assert result.provider == LOCAL_PROVIDER
        assert result.extracted_text == ""
        assert result.confidence == 0.0

    def test_suggest_name_from_image(self, make_service, fake_ocr, fake_text, png_bytes):
        google = fake_text("google", '{"suggestedName": "invoice_42"}')
        service = make_service(
            fake_ocr("techvision", AdapterReply("Invoice 42", confidence=0.75)), google
        )

        result = service.suggest_name_from_image(png_bytes, "IMG_0001.png")

        assert result.suggested_name == "invoice_42"
        request, _ = google.calls[0]
        assert "Invoice 42" in request.prompt
        assert "File type: image" in request.prompt


@pytest.mark.integration
class TestOrganisation:
    """Folder plans, duplicate detection and image pre-analysis."""

    FILES = [
        FileDescriptor("invoice.pdf", "pdf"),
        FileDescriptor("invoice_copy.pdf", "pdf"),
        FileDescriptor("holiday_photos_from_summer.jpg", "jpg"),
    ]

    def test_folder_plan_uses_stage_a(self, make_service, fake_text):
        openai = fake_text("openai", '{"folder_plan": {"root_folder_label": "Finance"}}')
        google = fake_text("google", "never")
        service = make_service(openai, google)

        plan = service.analyze_folder_structure(self.FILES, "free", user_rules="By year")

        assert plan.root_folder_label == "Finance"
        assert plan.provider == "openai"
        assert google.calls == []
        assert "User preferences: By year" in openai.calls[0][0].prompt

    def test_folder_plan_default_on_failure(self, make_service):
        plan = make_service().analyze_folder_structure(self.FILES)

        assert plan.root_folder_label == "Documents"
        assert len(plan.file_routing) == 3
        assert plan.provider == "fallback"

    def test_detect_duplicates_heuristic_on_failure(self, make_service):
        report = make_service().detect_duplicates(self.FILES)

        assert report.duplicate_groups[0].files == ["invoice.pdf", "invoice_copy.pdf"]
        assert report.provider == "fallback"

    def test_analyze_images_keeps_input_order(self, make_service, fake_vision, png_bytes):
        """Test bounded parallel analysis returns results in input order."""
        counter = {"n": 0}
        lock = threading.Lock()

        def describe(request, model):
            with lock:
                counter["n"] += 1
                n = counter["n"]
            time.sleep(0.05 if n == 1 else 0.0)
            return AdapterReply(f"image {request.image_base64[-8:]}")

        images = [png_bytes + bytes([i]) for i in range(4)]
        service = make_service(fake_vision("openai", describe), max_parallel=2)

        responses = service.analyze_images(images, "free")

        assert len(responses) == 4
        assert all(r.success for r in responses)
        expected = [base64.b64encode(image).decode("ascii")[-8:] for image in images]
        assert [r.content for r in responses] == [f"image {tail}" for tail in expected]

    def test_analyze_images_empty(self, make_service):
        assert make_service().analyze_images([]) == []


@pytest.mark.integration
class TestServiceWiring:
    """Construction from configuration."""

    def test_from_config_with_sqlite_metrics(self, tmp_path):
        config = Config.default()
        config.metrics["backend"] = "sqlite"
        config.metrics["db_path"] = str(tmp_path / "metrics.db")

        with AnalysisService.from_config(config) as service:
            status = service.get_provider_status()
            models = service.get_available_models()
            ocr = service.get_ocr_providers()

        assert status["openai"]["available"] is False
        assert any(m["id"] == "gpt-5-nano" for m in models)
        assert any(p["id"] == "aws-textract" for p in ocr)
        assert (tmp_path / "metrics.db").exists()
