"""
AWS Textract OCR adapter.

Uses ``detect_document_text`` on raw image bytes. Confidence is the mean LINE
confidence reported by Textract, normalised to [0, 1].

Note:
    Requires 'boto3' package: pip install boto3
"""

import logging
from typing import Any, List, Optional

from ...llm.providers.base_provider import OcrExtractor
from ...models.data_structures import AdapterReply
from ...utils.error_handlers import OCRError

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


class TextractOcr(OcrExtractor):
    """OCR through AWS Textract."""

    vendor = "aws-textract"

    def __init__(
        self,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region: Optional[str] = None,
        credential_env: str = "AWS_ACCESS_KEY_ID",
        secret_env: str = "AWS_SECRET_ACCESS_KEY",
    ) -> None:
        super().__init__(api_key=access_key, credential_env=credential_env)
        self.secret_key: Optional[str] = (secret_key or "").strip() or None
        self.secret_env = secret_env
        self.region = region or DEFAULT_REGION
        self._client: Optional[Any] = None

    def is_configured(self) -> bool:
        return self.api_key is not None and self.secret_key is not None

    def unconfigured_reason(self) -> Optional[str]:
        if self.api_key is None:
            return f"{self.credential_env} not configured"
        if self.secret_key is None:
            return f"{self.secret_env} not configured"
        return None

    def _get_client(self) -> Any:
        if self._client is None:
            self._require_configured()
            import boto3

            self._client = boto3.client(
                "textract",
                region_name=self.region,
                aws_access_key_id=self.api_key,
                aws_secret_access_key=self.secret_key,
            )
            logger.debug(f"Textract client initialized (region: {self.region})")
        return self._client

    def extract(self, image: bytes, method: str, quality_level: str) -> AdapterReply:
        client = self._get_client()
        try:
            response = client.detect_document_text(Document={"Bytes": image})
        except Exception as e:
            raise OCRError(
                message=f"Textract extraction failed: {e}",
                ocr_engine=self.vendor,
                original_error=e,
            ) from e

        lines = [
            block
            for block in response.get("Blocks", [])
            if block.get("BlockType") == "LINE" and block.get("Text")
        ]
        # Textract has no prompt; a title is the first detected line
        if method == "extract-title":
            lines = lines[:1]

        text = "\n".join(block["Text"] for block in lines)
        confidences: List[float] = [float(block.get("Confidence", 0.0)) for block in lines]
        confidence = sum(confidences) / len(confidences) / 100 if confidences else 0.0

        return AdapterReply(content=text, confidence=round(min(max(confidence, 0.0), 1.0), 4))

    def close(self) -> None:
        self._client = None
