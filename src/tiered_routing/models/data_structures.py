"""
Value objects shared by the routing engine, adapters and services.

Requests and responses are created per call and never persisted. Result
shapes (OCR, rename suggestion, folder plan, duplicate report) are what the
outbound services hand back to callers.
"""

import base64
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, List, Optional

from ..tiers.tier_config import ProcessingStage


class ContentKind(str, Enum):
    """Capability a request needs from a provider."""

    TEXT = "text"
    VISION = "vision"


DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


@dataclass
class ProviderRequest:
    """
    One unit of text or vision generation work.

    Attributes:
        kind: Content kind (text or vision).
        prompt: User prompt text.
        system_prompt: Optional system prompt.
        image_base64: Base64 image payload, required for vision requests.
        max_tokens: Optional output size; derived from the plan when None.
        stage: Processing stage selecting where the model chain starts.
    """

    kind: ContentKind
    prompt: str
    system_prompt: Optional[str] = None
    image_base64: Optional[str] = None
    max_tokens: Optional[int] = None
    stage: ProcessingStage = ProcessingStage.B

    def __post_init__(self) -> None:
        self.kind = ContentKind(self.kind)
        self.stage = ProcessingStage(self.stage or ProcessingStage.B)
        if self.kind is ContentKind.VISION and not self.image_base64:
            raise ValueError("Vision requests require an image payload")
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")

    @classmethod
    def text(cls, prompt: str, **kwargs: Any) -> "ProviderRequest":
        return cls(kind=ContentKind.TEXT, prompt=prompt, **kwargs)

    @classmethod
    def vision(cls, prompt: str, image: bytes, **kwargs: Any) -> "ProviderRequest":
        encoded = base64.b64encode(image).decode("ascii")
        return cls(kind=ContentKind.VISION, prompt=prompt, image_base64=encoded, **kwargs)

    @property
    def effective_system_prompt(self) -> str:
        return self.system_prompt or DEFAULT_SYSTEM_PROMPT

    def image_bytes(self) -> Optional[bytes]:
        if not self.image_base64:
            return None
        return base64.b64decode(self.image_base64)


@dataclass
class ProviderResponse:
    """
    Outcome of a routed request.

    Attributes:
        content: Raw content returned by the vendor.
        provider: Vendor name ("none" when every candidate failed).
        model: Logical model or OCR provider id ("none" on total failure).
        latency_ms: Latency measured by the engine around the adapter call.
        success: Whether a candidate succeeded.
        error_message: Aggregated diagnostic on failure.
        api_model: Concrete model name sent to the vendor, when known.
        confidence: Vendor or fixed confidence for OCR responses.
    """

    content: str
    provider: str
    model: str
    latency_ms: int
    success: bool
    error_message: Optional[str] = None
    api_model: Optional[str] = None
    confidence: Optional[float] = None

    @classmethod
    def failure(cls, error_message: str, latency_ms: int = 0) -> "ProviderResponse":
        return cls(
            content="",
            provider="none",
            model="none",
            latency_ms=latency_ms,
            success=False,
            error_message=error_message,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "provider": self.provider,
            "model": self.model,
            "latency_ms": self.latency_ms,
            "success": self.success,
            "error": self.error_message,
        }


@dataclass
class AdapterReply:
    """Raw reply from one adapter invocation."""

    content: str
    success: bool = True
    error: Optional[str] = None
    confidence: Optional[float] = None


@dataclass
class OcrResult:
    """
    Extracted text with confidence.

    Attributes:
        extracted_text: Text extracted from the image.
        confidence: Confidence in [0, 1].
        method: OCR method that was requested.
        provider: OCR provider label ("local" for the fallback extractor).
    """

    extracted_text: str
    confidence: float
    method: str
    provider: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "extracted_text": self.extracted_text,
            "confidence": self.confidence,
            "method": self.method,
            "provider": self.provider,
        }


@dataclass
class RenameResult:
    """
    Suggested filename.

    Attributes:
        suggested_name: Suggested name, without extension.
        confidence: Confidence in [0, 1].
        reasoning: Vendor reasoning or a note that the value was repaired.
        provider: Vendor that produced the content, or "fallback".
    """

    suggested_name: str
    confidence: float
    reasoning: str
    provider: str = "fallback"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggested_name": self.suggested_name,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "provider": self.provider,
        }


@dataclass
class FolderRules:
    applicable_extensions: List[str] = field(default_factory=lambda: ["*"])
    primary_grouping_key: str = "doc_type"
    filename_template: str = "{date}-{doc_type}-{sequence}"
    sequence_scope: str = "per_folder"


@dataclass
class FolderSpec:
    folder_id: str
    path: str
    description: str
    rules: FolderRules = field(default_factory=FolderRules)


@dataclass
class FileRoute:
    file_id: str
    folder_id: str
    filename_template: str
    reason: str


@dataclass
class FolderPlan:
    """
    Folder organisation plan.

    Attributes:
        root_folder_label: Label of the root folder.
        folders: Folder definitions.
        file_routing: Which folder each input file goes to.
        suggested_plan: Upgrade recommendation ("none" if not applicable).
        upgrade_reason: Reason for the recommendation, if any.
        confidence: Confidence in [0, 1].
        reasoning: Vendor reasoning or repair note.
        provider: Vendor that produced the plan, or "fallback".
    """

    root_folder_label: str
    folders: List[FolderSpec] = field(default_factory=list)
    file_routing: List[FileRoute] = field(default_factory=list)
    suggested_plan: str = "none"
    upgrade_reason: Optional[str] = None
    confidence: float = 0.8
    reasoning: str = ""
    provider: str = "fallback"


@dataclass
class DuplicateGroup:
    files: List[str]
    recommendation: str


@dataclass
class DuplicateReport:
    """Groups of files that look like duplicates or naming conflicts."""

    duplicate_groups: List[DuplicateGroup] = field(default_factory=list)
    summary: str = ""
    confidence: float = 0.8
    reasoning: str = ""
    provider: str = "fallback"


@dataclass
class FileDescriptor:
    """Name, type and optional content preview of a file under analysis."""

    name: str
    type: str = ""
    content: Optional[str] = None
    size: Optional[int] = None

    @property
    def stem(self) -> str:
        return file_stem(self.name)


def file_stem(file_name: str) -> str:
    """Return the file name without its final extension."""
    name = PurePath(file_name).name or file_name
    stem, dot, _ = name.rpartition(".")
    return stem if dot and stem else name
