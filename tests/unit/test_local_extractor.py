"""
Unit tests for the local Tesseract extractor.

Tesseract itself is replaced by a canned ``image_to_data`` result, so the
tests need neither the binary nor network access.
"""

import pytest
import pytesseract
from PIL import Image

from tiered_routing.ocr.local_extractor import LOCAL_PROVIDER, LocalOcrExtractor

TESSERACT_DATA = {
    "text": ["", "Quarterly", "Report", "", "ACME", "Corp", "noise"],
    "conf": ["-1", "90", "80", "-1", "70", "60", "-1"],
    "block_num": [1, 1, 1, 1, 1, 1, 2],
    "par_num": [1, 1, 1, 1, 1, 1, 1],
    "line_num": [0, 1, 1, 2, 2, 2, 1],
}


@pytest.fixture
def fake_tesseract(monkeypatch):
    """Replace pytesseract.image_to_data with a canned result."""
    calls = []

    def image_to_data(image, lang=None, config=None, output_type=None):
        calls.append({"lang": lang, "config": config, "output_type": output_type})
        return TESSERACT_DATA

    monkeypatch.setattr(pytesseract, "image_to_data", image_to_data)
    return calls


@pytest.mark.unit
class TestLocalOcrExtractor:
    """Tests for LocalOcrExtractor.extract."""

    def test_groups_words_into_lines(self, fake_tesseract, png_bytes):
        result = LocalOcrExtractor().extract(png_bytes, "extract-content")

        assert result.extracted_text == "Quarterly Report\nACME Corp"
        assert result.provider == LOCAL_PROVIDER
        assert result.method == "extract-content"
        assert result.confidence == pytest.approx(0.75)
        assert fake_tesseract[0]["config"] == "--psm 3"
        assert fake_tesseract[0]["output_type"] == pytesseract.Output.DICT

    def test_extract_title_keeps_first_line(self, fake_tesseract, png_bytes):
        result = LocalOcrExtractor(psm_mode=6).extract(png_bytes, "extract-title")

        assert result.extracted_text == "Quarterly Report"
        assert fake_tesseract[0]["config"] == "--psm 6"

    def test_undecodable_image(self, fake_tesseract):
        result = LocalOcrExtractor().extract(b"not an image", "extract-title")

        assert result.extracted_text == ""
        assert result.confidence == 0.0
        assert result.provider == LOCAL_PROVIDER
        assert fake_tesseract == []

    def test_decompression_bomb_image(self, fake_tesseract, monkeypatch, png_bytes):
        # 64x32 fixture image is over twice the lowered pixel limit
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

        result = LocalOcrExtractor().extract(png_bytes, "extract-content")

        assert result.extracted_text == ""
        assert result.confidence == 0.0
        assert result.method == "extract-content"
        assert fake_tesseract == []

    def test_missing_tesseract_binary(self, monkeypatch, png_bytes):
        def image_to_data(*args, **kwargs):
            raise pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(pytesseract, "image_to_data", image_to_data)

        result = LocalOcrExtractor().extract(png_bytes)

        assert result.extracted_text == ""
        assert result.confidence == 0.0
        assert result.method == "smart-naming"

    def test_no_words_found(self, monkeypatch, png_bytes):
        monkeypatch.setattr(
            pytesseract,
            "image_to_data",
            lambda *args, **kwargs: {"text": [""], "conf": ["-1"]},
        )

        result = LocalOcrExtractor().extract(png_bytes)

        assert result.extracted_text == ""
        assert result.confidence == 0.0
