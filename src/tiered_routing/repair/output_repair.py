"""Structured output repair.

Vendors are asked for JSON but not trusted to return it. ``repair`` tries
strict JSON first and hands the parsed object to the shape's strategy; when the
content is not a JSON object the strategy manufactures a best-effort value
from the raw text instead. Repaired values always carry a conservative
confidence (at most 0.5) and a reasoning string saying they were repaired, so
callers can tell them apart from vendor answers.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

from ..models.data_structures import (
    DuplicateGroup,
    DuplicateReport,
    FileDescriptor,
    FileRoute,
    FolderPlan,
    FolderRules,
    FolderSpec,
    RenameResult,
    file_stem,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_REPAIRED_CONFIDENCE = 0.5
_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


@dataclass
class RepairContext:
    """
    Inputs a strategy may need besides the raw content.

    Attributes:
        file_name: Original file name, for rename fallbacks.
        files: Files under analysis, for folder plans and duplicate groups.
        provider: Vendor that produced the content.
        max_length: Length cap for repaired names.
    """

    file_name: str = ""
    files: Sequence[FileDescriptor] = field(default_factory=list)
    provider: str = "fallback"
    max_length: Optional[int] = None


class RepairStrategy(ABC, Generic[T]):
    """Parse-then-fallback policy for one expected shape."""

    shape: str = ""
    heuristic_confidence: float = MAX_REPAIRED_CONFIDENCE

    @abstractmethod
    def from_json(self, data: Dict[str, Any], context: RepairContext) -> T:
        """Build the value from a parsed JSON object."""

    @abstractmethod
    def heuristic(self, raw_content: str, context: RepairContext) -> T:
        """Manufacture a best-effort value from unparseable content."""


def _parse_json_object(raw_content: str) -> Optional[Dict[str, Any]]:
    """Strictly parse a JSON object, unwrapping a surrounding Markdown fence."""
    text = (raw_content or "").strip()
    match = _CODE_FENCE.match(text)
    if match:
        text = match.group(1)
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return data if isinstance(data, dict) else None


def repair(raw_content: str, strategy: RepairStrategy[T], context: Optional[RepairContext] = None) -> T:
    """
    Turn raw vendor content into the strategy's shape.

    Args:
        raw_content: Content returned by the vendor.
        strategy: Strategy for the expected shape.
        context: Optional extra inputs for the strategy.

    Returns:
        A fully populated value; never raises on malformed content.
    """
    context = context or RepairContext()
    data = _parse_json_object(raw_content)
    if data is not None:
        try:
            return strategy.from_json(data, context)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Unexpected {strategy.shape} JSON structure: {e}")

    logger.info(f"Repairing unstructured {strategy.shape} response from {context.provider}")
    return strategy.heuristic(raw_content or "", context)


def _clamp_confidence(value: Any, default: float) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(confidence, 0.0), 1.0)


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) not in (None, ""):
            return data[key]
    return None


# ============================================================================
# Rename suggestion
# ============================================================================


class RenameRepair(RepairStrategy[RenameResult]):
    """
    Filename suggestion.

    The heuristic replaces non-alphanumeric characters with spaces, keeps the
    first five tokens, joins them with underscores and caps the length.
    """

    shape = "rename"
    heuristic_confidence = 0.4
    max_tokens = 5
    default_max_length = 50
    default_confidence = 0.8

    def from_json(self, data: Dict[str, Any], context: RepairContext) -> RenameResult:
        name = _pick(data, "suggestedName", "suggested_name", "name")
        return RenameResult(
            suggested_name=str(name) if name else file_stem(context.file_name),
            confidence=_clamp_confidence(data.get("confidence"), self.default_confidence),
            reasoning=str(_pick(data, "reasoning") or "Generated using AI analysis"),
            provider=context.provider,
        )

    def sanitize(self, text: str, max_length: Optional[int] = None) -> str:
        tokens = re.sub(r"[^A-Za-z0-9]+", " ", text or "").split()
        name = "_".join(tokens[: self.max_tokens])
        limit = max_length or self.default_max_length
        return name[:limit].strip("_")

    def heuristic(self, raw_content: str, context: RepairContext) -> RenameResult:
        name = self.sanitize(raw_content, context.max_length)
        if not name:
            name = file_stem(context.file_name) or "untitled"
        return RenameResult(
            suggested_name=name,
            confidence=self.heuristic_confidence,
            reasoning="Repaired from unstructured AI response",
            provider=context.provider,
        )


# ============================================================================
# Folder plan
# ============================================================================


def default_folder_plan(
    files: Sequence[FileDescriptor], reasoning: str, confidence: float, provider: str = "fallback"
) -> FolderPlan:
    """Single "Documents" folder receiving every file."""
    rules = FolderRules()
    return FolderPlan(
        root_folder_label="Documents",
        folders=[
            FolderSpec(
                folder_id="default",
                path="Documents",
                description="Default folder",
                rules=rules,
            )
        ],
        file_routing=[
            FileRoute(
                file_id=f"file_{i}",
                folder_id="default",
                filename_template=rules.filename_template,
                reason="Default routing",
            )
            for i in range(len(files))
        ],
        confidence=confidence,
        reasoning=reasoning,
        provider=provider,
    )


class FolderPlanRepair(RepairStrategy[FolderPlan]):
    """Folder organisation plan; the heuristic is the default single-folder plan."""

    shape = "folder_plan"
    heuristic_confidence = 0.3

    @staticmethod
    def _folder(raw: Dict[str, Any], index: int) -> FolderSpec:
        rules_data = raw.get("rules") or {}
        defaults = FolderRules()
        return FolderSpec(
            folder_id=str(_pick(raw, "folder_id", "folderId") or f"folder_{index}"),
            path=str(raw.get("path") or ""),
            description=str(raw.get("description") or ""),
            rules=FolderRules(
                applicable_extensions=list(
                    _pick(rules_data, "applicable_extensions", "applicableExtensions")
                    or defaults.applicable_extensions
                ),
                primary_grouping_key=str(
                    _pick(rules_data, "primary_grouping_key", "primaryGroupingKey")
                    or defaults.primary_grouping_key
                ),
                filename_template=str(
                    _pick(rules_data, "filename_template", "filenameTemplate")
                    or defaults.filename_template
                ),
                sequence_scope=str(
                    _pick(rules_data, "sequence_scope", "sequenceScope")
                    or defaults.sequence_scope
                ),
            ),
        )

    @staticmethod
    def _route(raw: Dict[str, Any], index: int) -> FileRoute:
        return FileRoute(
            file_id=str(_pick(raw, "file_id", "fileId") or f"file_{index}"),
            folder_id=str(_pick(raw, "folder_id", "folderId") or "default"),
            filename_template=str(
                _pick(raw, "filename_template", "filenameTemplate")
                or FolderRules().filename_template
            ),
            reason=str(raw.get("reason") or ""),
        )

    def from_json(self, data: Dict[str, Any], context: RepairContext) -> FolderPlan:
        plan = _pick(data, "folder_plan", "folderPlan") or {}
        upgrade = _pick(data, "upgrade_recommendation", "upgradeRecommendation") or {}
        return FolderPlan(
            root_folder_label=str(
                _pick(plan, "root_folder_label", "rootFolderLabel") or "Documents"
            ),
            folders=[self._folder(f, i) for i, f in enumerate(plan.get("folders") or [])],
            file_routing=[
                self._route(r, i)
                for i, r in enumerate(_pick(plan, "file_routing", "fileRouting") or [])
            ],
            suggested_plan=str(
                _pick(upgrade, "suggested_plan", "suggestedPlan") or "none"
            ),
            upgrade_reason=upgrade.get("reason") or None,
            confidence=_clamp_confidence(data.get("confidence"), 0.8),
            reasoning=str(data.get("reasoning") or "Generated using AI analysis"),
            provider=context.provider,
        )

    def heuristic(self, raw_content: str, context: RepairContext) -> FolderPlan:
        return default_folder_plan(
            context.files,
            reasoning="Failed to parse AI response, using default folder plan",
            confidence=self.heuristic_confidence,
            provider=context.provider,
        )


# ============================================================================
# Duplicate groups
# ============================================================================


def group_similar_names(files: Sequence[FileDescriptor]) -> List[DuplicateGroup]:
    """
    Group files whose stems contain each other or differ in length by <= 3.

    Matching is greedy and order dependent: each file joins the first group
    whose anchor it matches.
    """
    groups: List[DuplicateGroup] = []
    processed = set()

    for i, anchor in enumerate(files):
        if i in processed:
            continue
        base = anchor.stem.lower()
        similar = [anchor.name]

        for j in range(i + 1, len(files)):
            if j in processed:
                continue
            current = files[j].stem.lower()
            if current in base or base in current or abs(len(current) - len(base)) <= 3:
                similar.append(files[j].name)
                processed.add(j)

        if len(similar) > 1:
            groups.append(
                DuplicateGroup(
                    files=similar,
                    recommendation=(
                        "These files appear similar. Consider renaming to avoid "
                        f"confusion: {base}_v1, {base}_v2, etc."
                    ),
                )
            )

    return groups


class DuplicateGroupRepair(RepairStrategy[DuplicateReport]):
    """Duplicate groups; the heuristic groups files by name similarity."""

    shape = "duplicate_groups"
    heuristic_confidence = 0.35

    def from_json(self, data: Dict[str, Any], context: RepairContext) -> DuplicateReport:
        groups = [
            DuplicateGroup(
                files=[str(name) for name in group.get("files") or []],
                recommendation=str(group.get("recommendation") or ""),
            )
            for group in _pick(data, "duplicateGroups", "duplicate_groups") or []
        ]
        return DuplicateReport(
            duplicate_groups=groups,
            summary=str(data.get("summary") or ""),
            confidence=_clamp_confidence(data.get("confidence"), 0.8),
            reasoning=str(data.get("reasoning") or "Generated using AI analysis"),
            provider=context.provider,
        )

    def heuristic(self, raw_content: str, context: RepairContext) -> DuplicateReport:
        groups = group_similar_names(context.files)
        return DuplicateReport(
            duplicate_groups=groups,
            summary=(
                f"Found {len(groups)} potential duplicate groups among "
                f"{len(context.files)} files."
            ),
            confidence=self.heuristic_confidence,
            reasoning="Grouped by file name similarity",
            provider=context.provider,
        )
