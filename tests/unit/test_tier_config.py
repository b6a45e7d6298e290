"""
Unit tests for tier resolution and chain building.
"""

import dataclasses

import pytest

from tiered_routing.tiers import model_catalog
from tiered_routing.tiers.tier_config import (
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


@pytest.mark.unit
class TestResolve:
    """Tests for resolve()."""

    @pytest.mark.parametrize("plan", ["free", "basic", "pro", "unlimited"])
    def test_known_plan_names(self, plan):
        assert resolve(plan).plan_name == plan

    @pytest.mark.parametrize(
        "plan_type, expected",
        [("credits_low", "basic"), ("credits_high", "pro"), ("unlimited", "unlimited")],
    )
    def test_billing_plan_types(self, plan_type, expected):
        assert resolve(plan_type).plan_name == expected
        assert map_plan_type_to_name(plan_type) == expected

    @pytest.mark.parametrize("identifier", [None, "", "enterprise", "FREE"])
    def test_unknown_identifier_defaults_to_free(self, identifier):
        """Test the total default-on-unknown behaviour."""
        assert resolve(identifier) is TIER_CONFIGS["free"]

    def test_tiers_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            resolve("pro").ocr_quality = "low"

    def test_every_tier_model_is_in_catalog(self):
        for tier in TIER_CONFIGS.values():
            for model_id in tier.models:
                assert model_catalog.get_model_info(model_id) is not None
            for ocr_id in ocr_chain(tier):
                assert model_catalog.get_ocr_provider_info(ocr_id) is not None

    def test_invalid_tier_rejected(self):
        """Test that a tier needs exactly four models."""
        with pytest.raises(ValueError):
            TierConfig(
                plan_tier="free",
                plan_name="broken",
                models=("gpt-5-nano",),
                ocr_providers=(None, None, None),
                ocr_quality="low",
                limits=UsageLimits(1, 1, 1),
            )


@pytest.mark.unit
class TestModelChain:
    """Tests for model_chain()."""

    def test_stage_b_starts_at_secondary(self):
        tier = resolve("free")
        assert model_chain(tier, ProcessingStage.B) == [
            tier.secondary,
            tier.primary,
            tier.tertiary,
            tier.quaternary,
        ]

    def test_stage_defaults_to_b(self):
        tier = resolve("pro")
        assert model_chain(tier) == model_chain(tier, "b")
        assert model_chain(tier, None) == model_chain(tier, "b")

    def test_stage_a_starts_at_primary(self):
        tier = resolve("unlimited")
        assert model_chain(tier, "a") == list(tier.models)

    def test_basic_stage_a_override(self):
        """Test that basic puts gpt-5.2 first for stage a only."""
        tier = resolve("basic")
        assert model_chain(tier, "a") == [
            "gpt-5.2",
            tier.secondary,
            tier.tertiary,
            tier.quaternary,
        ]
        assert model_chain(tier, "b")[0] == tier.secondary

    def test_model_for_stage(self):
        assert model_for_stage("credits_low", "a") == "gpt-5.2"
        assert model_for_stage("free", "a") == "gpt-5-nano"


@pytest.mark.unit
class TestOcrChainAndSpeed:
    """Tests for ocr_chain() and speed tiers."""

    def test_ocr_chain_skips_empty_slots(self):
        tier = dataclasses.replace(
            resolve("pro"), ocr_providers=("aws-textract", None, "techvision")
        )
        assert ocr_chain(tier) == ["aws-textract", "techvision"]

    @pytest.mark.parametrize(
        "plan, speed, tokens",
        [
            ("free", SpeedTier.STANDARD, 1024),
            ("basic", SpeedTier.STANDARD, 1024),
            ("pro", SpeedTier.FAST, 2048),
            ("unlimited", SpeedTier.INSTANT, 4096),
        ],
    )
    def test_speed_tiers(self, plan, speed, tokens):
        assert speed_tier(plan) is speed
        assert max_tokens_for_speed(speed) == tokens

    def test_unlimited_limits(self):
        limits = resolve("unlimited").limits
        assert limits.allows_files(10**6)
        assert limits.allows_folders(10**6)
        assert not resolve("free").limits.allows_files(10**6)


@pytest.mark.unit
class TestTierResolver:
    """Tests for TierResolver overrides."""

    def test_override_replaces_models_and_ocr(self):
        resolver = TierResolver(
            {
                "pro": {
                    "models": [
                        "claude-3.5-sonnet",
                        "gemini-2.5-flash",
                        "mistral-small-2025",
                        "llama-3.1-small",
                    ],
                    "ocr": ["aws-textract"],
                    "ocr_quality": "medium",
                }
            }
        )

        tier = resolver.resolve("credits_high")

        assert tier.primary == "claude-3.5-sonnet"
        assert resolver.ocr_chain("pro") == ["aws-textract"]
        assert tier.ocr_quality == "medium"
        assert TIER_CONFIGS["pro"].primary == "gpt-5.2"

    def test_unknown_plan_override_ignored(self):
        resolver = TierResolver({"enterprise": {"models": []}})
        assert [t.plan_name for t in resolver.plans()] == ["free", "basic", "pro", "unlimited"]

    def test_basic_rule_survives_override(self):
        resolver = TierResolver(
            {"basic": {"models": ["mistral-small-2025", "gemini-2.5-flash", "llama-3.1-small", "gpt-5-nano"]}}
        )
        assert resolver.model_chain("basic", "a")[0] == "gpt-5.2"
