"""
Unit tests for configuration loading and validation.
"""

import os
from pathlib import Path

import pytest
import yaml

from tiered_routing.utils.config_loader import (
    DEFAULT_CONFIG,
    PROJECT_ROOT,
    Config,
    RouterConfig,
    load_environment,
)


def write_config(tmp_path: Path, data) -> str:
    path = tmp_path / "router_config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


@pytest.mark.unit
class TestConfigLoad:
    """Tests for Config.load and Config.default."""

    def test_default_config(self):
        config = Config.default()

        assert config.attempt_timeout == 30.0
        assert config.env_var("openai") == "OPENAI_API_KEY"
        assert config.metrics["db_path"] == str(PROJECT_ROOT / "data/api_metrics.db")
        assert config.tiers == {}

    def test_partial_file_merged_with_defaults(self, tmp_path):
        path = write_config(
            tmp_path,
            {
                "routing": {"attempt_timeout_seconds": 5},
                "providers": {"env": {"openai": "MY_OPENAI_KEY"}},
            },
        )

        config = Config.load(path, load_env=False)

        assert config.attempt_timeout == 5.0
        assert config.env_var("openai") == "MY_OPENAI_KEY"
        assert config.env_var("google") == "GOOGLE_API_KEY"
        assert DEFAULT_CONFIG["providers"]["env"]["openai"] == "OPENAI_API_KEY"

    def test_absolute_db_path_kept(self, tmp_path):
        db_path = str(tmp_path / "m.db")
        path = write_config(tmp_path, {"metrics": {"backend": "sqlite", "db_path": db_path}})

        config = Config.load(path, load_env=False)

        assert config.metrics["db_path"] == db_path

    def test_shipped_config_is_valid(self):
        config = Config.load(load_env=False)
        assert Config.validate(config) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.load(str(tmp_path / "missing.yaml"), load_env=False)

    def test_non_dict_file(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ValueError):
            Config.load(str(path), load_env=False)

    def test_missing_section_rejected(self):
        with pytest.raises(KeyError):
            RouterConfig(routing={}, providers={})

    def test_load_environment_does_not_override(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("OPENAI_API_KEY=from-file\nROUTER_TEST_VALUE=loaded\n")
        monkeypatch.setenv("OPENAI_API_KEY", "from-env")
        monkeypatch.setenv("ROUTER_TEST_VALUE", "")
        monkeypatch.delenv("ROUTER_TEST_VALUE")

        assert load_environment(env_file) is True

        assert os.environ["OPENAI_API_KEY"] == "from-env"
        assert os.environ["ROUTER_TEST_VALUE"] == "loaded"


@pytest.mark.unit
class TestConfigValidate:
    """Tests for Config.validate."""

    def test_invalid_values_reported(self, tmp_path):
        path = write_config(
            tmp_path,
            {
                "routing": {"attempt_timeout_seconds": 0},
                "analysis": {"max_parallel": 0},
                "metrics": {"backend": "redis"},
                "logging": {"level": "LOUD"},
            },
        )

        errors = Config.validate(Config.load(path, load_env=False))

        assert len(errors) == 4
        assert any("attempt_timeout_seconds" in e for e in errors)
        assert any("analysis.max_parallel" in e for e in errors)
        assert any("metrics.backend" in e for e in errors)
        assert any("logging.level" in e for e in errors)

    def test_tier_overrides_checked(self, tmp_path):
        path = write_config(
            tmp_path,
            {
                "tiers": {
                    "enterprise": {"models": []},
                    "pro": {"models": ["gpt-9"], "ocr": ["paper-scanner"]},
                }
            },
        )

        errors = Config.validate(Config.load(path, load_env=False))

        assert "tiers.enterprise: unknown plan" in errors
        assert "tiers.pro.models: unknown model 'gpt-9'" in errors
        assert "tiers.pro.ocr: unknown OCR provider 'paper-scanner'" in errors
