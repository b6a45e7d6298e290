"""
Local OCR fallback on Tesseract.

The extractor needs no network access and no credentials. It is the floor
under the remote OCR chain: it runs when no remote OCR vendor is configured
or every remote attempt failed, and it always returns a result. Images that
cannot be decoded (oversized ones included), or a missing Tesseract binary,
give an empty text with zero confidence rather than an exception.

Note:
    Requires 'pytesseract' and a Tesseract installation.
"""

import io
import logging
from typing import Dict, List, Optional, Tuple

import pytesseract
from PIL import Image, UnidentifiedImageError

from ..models.data_structures import OcrResult

logger = logging.getLogger(__name__)

LOCAL_PROVIDER = "local"


class LocalOcrExtractor:
    """
    Tesseract-backed OCR returning OcrResult objects.

    Attributes:
        lang: Tesseract language code.
        psm_mode: Tesseract page segmentation mode.
    """

    def __init__(self, lang: str = "eng", psm_mode: int = 3) -> None:
        self.lang = lang
        self.psm_mode = psm_mode

    def extract(self, image: bytes, method: str = "smart-naming") -> OcrResult:
        """
        Extract text from image bytes.

        Args:
            image: Raw image bytes in any format PIL can open.
            method: OCR method; "extract-title" keeps only the first line.

        Returns:
            OcrResult with provider "local" and confidence equal to the mean
            per-word Tesseract confidence divided by 100.
        """
        try:
            pil_image = Image.open(io.BytesIO(image))
            pil_image.load()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Local OCR could not decode image: {e}")
            return self._empty(method)
        except Image.DecompressionBombError as e:
            logger.warning(f"Local OCR refused oversized image: {e}")
            return self._empty(method)

        try:
            data = pytesseract.image_to_data(
                pil_image,
                lang=self.lang,
                config=f"--psm {self.psm_mode}",
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError) as e:
            logger.error(f"Local OCR engine unavailable: {e}")
            return self._empty(method)

        lines, confidences = self._collect(data)
        if method == "extract-title":
            lines = lines[:1]

        confidence = sum(confidences) / len(confidences) / 100 if confidences else 0.0
        text = "\n".join(lines)
        logger.debug(
            f"Local OCR extracted {len(confidences)} words (confidence: {confidence:.2f})"
        )
        return OcrResult(
            extracted_text=text,
            confidence=round(min(max(confidence, 0.0), 1.0), 4),
            method=method,
            provider=LOCAL_PROVIDER,
        )

    @staticmethod
    def _collect(data: Dict[str, List]) -> Tuple[List[str], List[float]]:
        """Group recognised words into lines and gather word confidences."""
        lines: Dict[Tuple[int, int, int], List[str]] = {}
        confidences: List[float] = []

        for i, word in enumerate(data.get("text", [])):
            word = (word or "").strip()
            try:
                conf = float(data["conf"][i])
            except (KeyError, IndexError, TypeError, ValueError):
                conf = -1.0
            # Tesseract reports -1 for non-word boxes
            if not word or conf < 0:
                continue
            key = tuple(
                int((data.get(name) or [0] * (i + 1))[i])
                for name in ("block_num", "par_num", "line_num")
            )
            lines.setdefault(key, []).append(word)
            confidences.append(conf)

        return [" ".join(words) for words in lines.values()], confidences

    @staticmethod
    def _empty(method: Optional[str]) -> OcrResult:
        return OcrResult(
            extracted_text="",
            confidence=0.0,
            method=method or "smart-naming",
            provider=LOCAL_PROVIDER,
        )
