"""
Tier resolution and model/OCR catalogs.
"""

from .model_catalog import (
    AI_MODELS,
    OCR_PROVIDERS,
    ModelInfo,
    OcrProviderInfo,
    get_model_info,
    get_ocr_provider_info,
)
from .tier_config import (
    TIER_CONFIGS,
    ProcessingStage,
    SpeedTier,
    TierConfig,
    TierResolver,
    UsageLimits,
    map_plan_type_to_name,
    max_tokens_for_speed,
    model_chain,
    model_for_stage,
    ocr_chain,
    resolve,
    speed_tier,
)

__all__ = [
    "AI_MODELS",
    "OCR_PROVIDERS",
    "ModelInfo",
    "OcrProviderInfo",
    "get_model_info",
    "get_ocr_provider_info",
    "TIER_CONFIGS",
    "ProcessingStage",
    "SpeedTier",
    "TierConfig",
    "TierResolver",
    "UsageLimits",
    "map_plan_type_to_name",
    "max_tokens_for_speed",
    "model_chain",
    "model_for_stage",
    "ocr_chain",
    "resolve",
    "speed_tier",
]
