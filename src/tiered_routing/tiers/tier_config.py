"""Subscription tier table and chain builders.

Maps an opaque plan identifier (plan name or billing plan type) to a static
TierConfig, and derives from it the ordered model chain for a processing
stage, the OCR chain, and the speed tier that sets default output size.

Stage "a" is the structuring pass (folder planning) and starts from the
tier's primary model; stage "b" covers ordinary requests and starts from the
secondary model. The basic plan is the one exception: for stage "a" it puts
``gpt-5.2`` in place of its own primary model. That rule is business policy
and is kept as is.
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_PLAN = "free"
PLAN_NAMES = ("free", "basic", "pro", "unlimited")

# Plan that is shown the top model for stage "a", and that model
STAGE_A_OVERRIDE_PLAN = "basic"
STAGE_A_OVERRIDE_MODEL = "gpt-5.2"

UNLIMITED = -1


class ProcessingStage(str, Enum):
    """Processing stage tag selecting the start of the model chain."""

    A = "a"
    B = "b"


class SpeedTier(str, Enum):
    """Speed tier derived from the plan name."""

    STANDARD = "standard"
    FAST = "fast"
    INSTANT = "instant"


MAX_TOKENS_BY_SPEED: Dict[SpeedTier, int] = {
    SpeedTier.STANDARD: 1024,
    SpeedTier.FAST: 2048,
    SpeedTier.INSTANT: 4096,
}


@dataclass(frozen=True)
class UsageLimits:
    """Numeric usage limits for a tier. ``-1`` denotes unlimited.

    Attributes:
        folder_limit: Maximum number of folders.
        file_limit: Maximum number of files.
        max_file_size_mb: Maximum size of a single file in megabytes.
    """

    folder_limit: int
    file_limit: int
    max_file_size_mb: int

    @staticmethod
    def _allows(limit: int, value: int) -> bool:
        return limit == UNLIMITED or value <= limit

    def allows_folders(self, count: int) -> bool:
        return self._allows(self.folder_limit, count)

    def allows_files(self, count: int) -> bool:
        return self._allows(self.file_limit, count)

    def allows_file_size(self, size_mb: float) -> bool:
        return self.max_file_size_mb == UNLIMITED or size_mb <= self.max_file_size_mb


@dataclass(frozen=True)
class TierConfig:
    """Immutable configuration for one plan.

    Attributes:
        plan_tier: Coarse tier (free/medium/premium).
        plan_name: Fine-grained plan name (free/basic/pro/unlimited).
        models: Four logical model ids, primary to quaternary.
        ocr_providers: OCR chain, primary to tertiary; entries may be None.
        ocr_quality: OCR quality level (low/medium/high).
        limits: Usage limits.
    """

    plan_tier: str
    plan_name: str
    models: Tuple[str, str, str, str]
    ocr_providers: Tuple[Optional[str], Optional[str], Optional[str]]
    ocr_quality: str
    limits: UsageLimits

    def __post_init__(self) -> None:
        if len(self.models) != 4:
            raise ValueError(
                f"Tier '{self.plan_name}' needs exactly 4 models, got {len(self.models)}"
            )
        if len(self.ocr_providers) != 3:
            raise ValueError(
                f"Tier '{self.plan_name}' needs 3 OCR slots, got {len(self.ocr_providers)}"
            )
        if self.ocr_quality not in ("low", "medium", "high"):
            raise ValueError(f"Invalid OCR quality level: {self.ocr_quality}")

    @property
    def primary(self) -> str:
        return self.models[0]

    @property
    def secondary(self) -> str:
        return self.models[1]

    @property
    def tertiary(self) -> str:
        return self.models[2]

    @property
    def quaternary(self) -> str:
        return self.models[3]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan_tier": self.plan_tier,
            "plan_name": self.plan_name,
            "models": list(self.models),
            "ocr": {
                "providers": list(self.ocr_providers),
                "quality_level": self.ocr_quality,
            },
            "limits": dataclasses.asdict(self.limits),
        }


_SHARED_FALLBACK_MODELS = ("gemini-2.5-flash", "mistral-small-2025", "llama-3.1-small")

TIER_CONFIGS: Dict[str, TierConfig] = {
    "free": TierConfig(
        plan_tier="free",
        plan_name="free",
        models=("gpt-5-nano",) + _SHARED_FALLBACK_MODELS,
        ocr_providers=("techvision", "google-vision-lite", "azure-vision-lite"),
        ocr_quality="low",
        limits=UsageLimits(folder_limit=5, file_limit=25, max_file_size_mb=5),
    ),
    "basic": TierConfig(
        plan_tier="medium",
        plan_name="basic",
        models=("gpt-5-nano",) + _SHARED_FALLBACK_MODELS,
        ocr_providers=("google-vision-standard", "azure-vision-standard", "techvision"),
        ocr_quality="medium",
        limits=UsageLimits(folder_limit=50, file_limit=500, max_file_size_mb=25),
    ),
    "pro": TierConfig(
        plan_tier="medium",
        plan_name="pro",
        models=("gpt-5.2",) + _SHARED_FALLBACK_MODELS,
        ocr_providers=("google-vision-advanced", "azure-vision-advanced", "aws-textract"),
        ocr_quality="high",
        limits=UsageLimits(folder_limit=200, file_limit=2000, max_file_size_mb=50),
    ),
    "unlimited": TierConfig(
        plan_tier="premium",
        plan_name="unlimited",
        models=("gpt-5.2",) + _SHARED_FALLBACK_MODELS,
        ocr_providers=("google-vision-advanced", "azure-vision-advanced", "aws-textract"),
        ocr_quality="high",
        limits=UsageLimits(
            folder_limit=UNLIMITED, file_limit=UNLIMITED, max_file_size_mb=100
        ),
    ),
}

_PLAN_TYPE_TO_NAME = {
    "credits_low": "basic",
    "credits_high": "pro",
    "unlimited": "unlimited",
    "free": "free",
}


def map_plan_type_to_name(plan_type: Optional[str]) -> str:
    """Map a billing plan type to a plan name.

    Args:
        plan_type: Billing plan type (free, credits_low, credits_high, unlimited).

    Returns:
        Plan name; "free" for anything unrecognised.
    """
    return _PLAN_TYPE_TO_NAME.get(plan_type or "", DEFAULT_PLAN)


def resolve_plan_name(identifier: Optional[str]) -> str:
    """Normalise a plan identifier that may be a plan name or a billing plan type."""
    if identifier in TIER_CONFIGS:
        return identifier
    return map_plan_type_to_name(identifier)


def resolve(identifier: Optional[str]) -> TierConfig:
    """Resolve a plan identifier to its TierConfig.

    Total function: unknown or missing identifiers resolve to the free tier.

    Args:
        identifier: Plan name, billing plan type, or None.

    Returns:
        The matching TierConfig.
    """
    plan_name = resolve_plan_name(identifier)
    if identifier is not None and plan_name == DEFAULT_PLAN and identifier != DEFAULT_PLAN:
        logger.debug(f"Unknown plan identifier '{identifier}', using '{DEFAULT_PLAN}'")
    return TIER_CONFIGS[plan_name]


def _coerce_stage(stage: Union[ProcessingStage, str, None]) -> ProcessingStage:
    if stage is None:
        return ProcessingStage.B
    return ProcessingStage(stage)


def model_chain(
    tier: TierConfig, stage: Union[ProcessingStage, str, None] = ProcessingStage.B
) -> List[str]:
    """Build the ordered model chain for a tier and stage.

    Args:
        tier: Resolved tier configuration.
        stage: Processing stage; defaults to "b".

    Returns:
        Four logical model ids in the order they must be tried:
        stage "b" gives (secondary, primary, tertiary, quaternary), stage "a"
        gives (primary, secondary, tertiary, quaternary) except for the basic
        plan, which starts with ``gpt-5.2`` in place of its primary.
    """
    if _coerce_stage(stage) is ProcessingStage.A:
        if tier.plan_name == STAGE_A_OVERRIDE_PLAN:
            return [STAGE_A_OVERRIDE_MODEL, tier.secondary, tier.tertiary, tier.quaternary]
        return [tier.primary, tier.secondary, tier.tertiary, tier.quaternary]

    return [tier.secondary, tier.primary, tier.tertiary, tier.quaternary]


def model_for_stage(
    identifier: Optional[str], stage: Union[ProcessingStage, str, None] = ProcessingStage.B
) -> str:
    """Return the first model of the chain for a plan and stage."""
    return model_chain(resolve(identifier), stage)[0]


def ocr_chain(tier: TierConfig) -> List[str]:
    """Return the tier's OCR provider ids in order, skipping empty slots."""
    return [provider for provider in tier.ocr_providers if provider]


def speed_tier(plan_name: str) -> SpeedTier:
    """Map a plan name to its speed tier: pro is fast, unlimited is instant."""
    if plan_name == "unlimited":
        return SpeedTier.INSTANT
    if plan_name == "pro":
        return SpeedTier.FAST
    return SpeedTier.STANDARD


def max_tokens_for_speed(speed: SpeedTier) -> int:
    """Default output size for a speed tier."""
    return MAX_TOKENS_BY_SPEED.get(speed, MAX_TOKENS_BY_SPEED[SpeedTier.STANDARD])


class TierResolver:
    """Tier lookup with optional configured overrides.

    Overrides replace a plan's model list and/or OCR chain; they never add or
    remove plans and leave the stage "a" basic rule untouched.

    Example:
        >>> resolver = TierResolver({"pro": {"models": ["claude-3.5-sonnet",
        ...     "gemini-2.5-flash", "mistral-small-2025", "llama-3.1-small"]}})
        >>> resolver.resolve("credits_high").primary
        'claude-3.5-sonnet'
    """

    def __init__(self, overrides: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._tiers: Dict[str, TierConfig] = dict(TIER_CONFIGS)
        for plan_name, override in (overrides or {}).items():
            if plan_name not in self._tiers:
                logger.warning(f"Ignoring tier override for unknown plan '{plan_name}'")
                continue
            self._tiers[plan_name] = self._apply_override(
                self._tiers[plan_name], override or {}
            )

    @staticmethod
    def _apply_override(tier: TierConfig, override: Mapping[str, Any]) -> TierConfig:
        changes: Dict[str, Any] = {}
        if "models" in override:
            changes["models"] = tuple(override["models"])
        if "ocr" in override:
            ocr = list(override["ocr"])[:3]
            changes["ocr_providers"] = tuple(ocr + [None] * (3 - len(ocr)))
        if "ocr_quality" in override:
            changes["ocr_quality"] = override["ocr_quality"]
        if changes:
            logger.info(f"Applying tier override for '{tier.plan_name}': {sorted(changes)}")
        return dataclasses.replace(tier, **changes)

    def resolve(self, identifier: Optional[str]) -> TierConfig:
        """Resolve a plan identifier, falling back to the free tier."""
        return self._tiers[resolve_plan_name(identifier)]

    def model_chain(
        self, identifier: Optional[str], stage: Union[ProcessingStage, str, None] = None
    ) -> List[str]:
        return model_chain(self.resolve(identifier), stage)

    def ocr_chain(self, identifier: Optional[str]) -> List[str]:
        return ocr_chain(self.resolve(identifier))

    def plans(self) -> List[TierConfig]:
        return [self._tiers[name] for name in PLAN_NAMES]
