"""Configuration loading and validation for the tiered routing engine.

This module loads router configuration from YAML, fills every missing section
from built-in defaults, resolves relative paths against the project root and
validates the result. Vendor credentials never live in the YAML file: they are
read from the process environment, optionally seeded from a ``.env`` file.

Typical usage example:
    config = Config.load()
    errors = Config.validate(config)
    if errors:
        raise ConfigurationError(f"Configuration invalid: {errors}")
"""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

# src/tiered_routing/utils/config_loader.py -> project root
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

DEFAULT_CONFIG: Dict[str, Any] = {
    "routing": {
        "attempt_timeout_seconds": 30.0,
        "default_plan": "free",
    },
    "providers": {
        "client_timeout_seconds": 60.0,
        "client_max_retries": 0,
        "env": {
            "openai": "OPENAI_API_KEY",
            "google": "GOOGLE_API_KEY",
            "mistral": "MISTRAL_API_KEY",
            "meta": "OPENROUTER_API_KEY",
            "anthropic": "ANTHROPIC_API_KEY",
            "azure_key": "AZURE_OPENAI_API_KEY",
            "azure_endpoint": "AZURE_OPENAI_ENDPOINT",
            "aws_access_key": "AWS_ACCESS_KEY_ID",
            "aws_secret_key": "AWS_SECRET_ACCESS_KEY",
            "aws_region": "AWS_REGION",
        },
        "meta_base_url": "https://openrouter.ai/api/v1",
        "azure_api_version": "2024-06-01",
    },
    "metrics": {
        "backend": "memory",
        "db_path": "data/api_metrics.db",
    },
    "analysis": {
        "max_parallel": 4,
    },
    "logging": {
        "level": "INFO",
    },
    "tiers": {},
}


class RouterConfig:
    """Container for router configuration parameters.

    Attributes:
        routing: Attempt timeout, worker count and default plan.
        providers: Credential variable names, base URLs and client settings.
        metrics: Metrics store backend and SQLite path.
        analysis: Bounded parallelism for image pre-analysis.
        logging: Logging configuration.
        tiers: Optional per-plan model/OCR chain overrides.
    """

    def __init__(self, **config_dict: Dict[str, Any]) -> None:
        """Initialize RouterConfig from configuration dictionary.

        Args:
            **config_dict: Configuration dictionary with required keys:
                routing, providers, metrics, analysis, logging.

        Raises:
            KeyError: If any required configuration section is missing.
        """
        required_keys = ["routing", "providers", "metrics", "analysis", "logging"]

        missing_keys = [key for key in required_keys if key not in config_dict]
        if missing_keys:
            raise KeyError(f"Missing required configuration sections: {missing_keys}")

        self.routing: Dict[str, Any] = config_dict["routing"]
        self.providers: Dict[str, Any] = config_dict["providers"]
        self.metrics: Dict[str, Any] = config_dict["metrics"]
        self.analysis: Dict[str, Any] = config_dict["analysis"]
        self.logging: Dict[str, Any] = config_dict["logging"]
        self.tiers: Dict[str, Any] = config_dict.get("tiers") or {}

    @property
    def attempt_timeout(self) -> float:
        return float(self.routing["attempt_timeout_seconds"])

    def env_var(self, key: str) -> str:
        """Return the environment variable name configured for ``key``."""
        return self.providers["env"][key]


def load_environment(dotenv_path: Optional[Path] = None) -> bool:
    """Seed ``os.environ`` from a ``.env`` file without overriding real values.

    Args:
        dotenv_path: Optional explicit path. Defaults to ``<project root>/.env``.

    Returns:
        True if a file was found and loaded.
    """
    path = dotenv_path or PROJECT_ROOT / ".env"
    return load_dotenv(dotenv_path=path, override=False)


class Config:
    """Static utility class for loading and validating configuration files."""

    # Configuration keys that contain paths relative to the project root
    _RELATIVE_PATH_KEYS = [
        "metrics.db_path",
    ]

    @staticmethod
    def _merge_defaults(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay a loaded dictionary on top of DEFAULT_CONFIG, section by section."""
        merged = copy.deepcopy(DEFAULT_CONFIG)
        for section, values in config_dict.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
                if section == "providers" and isinstance(values.get("env"), dict):
                    env = dict(DEFAULT_CONFIG["providers"]["env"])
                    env.update(values["env"])
                    merged[section]["env"] = env
            else:
                merged[section] = values
        return merged

    @staticmethod
    def _resolve_nested_path(
        config_dict: Dict[str, Any], key_path: str, project_root: Path
    ) -> None:
        """Resolve a nested config path to absolute path in-place.

        Args:
            config_dict: Configuration dictionary to modify in-place.
            key_path: Dot-separated path to the key (e.g., "metrics.db_path").
            project_root: Project root directory for resolving relative paths.

        Raises:
            KeyError: If any key in the path doesn't exist in config_dict.
        """
        keys = key_path.split(".")
        current = config_dict

        for key in keys[:-1]:
            current = current[key]

        final_key = keys[-1]
        value = Path(current[final_key])
        if not value.is_absolute():
            current[final_key] = str(project_root / value)

    @staticmethod
    def default() -> RouterConfig:
        """Build a configuration from built-in defaults only."""
        config_dict = copy.deepcopy(DEFAULT_CONFIG)
        for path_key in Config._RELATIVE_PATH_KEYS:
            Config._resolve_nested_path(config_dict, path_key, PROJECT_ROOT)
        return RouterConfig(**config_dict)

    @staticmethod
    def load(
        config_path: Optional[str] = "config/router_config.yaml",
        load_env: bool = True,
    ) -> RouterConfig:
        """Load router configuration from a YAML file.

        Args:
            config_path: Path to the YAML file, absolute or relative to the
                project root. Defaults to "config/router_config.yaml".
            load_env: Whether to seed the environment from ``.env`` first.

        Returns:
            RouterConfig with defaults filled in and paths resolved.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            yaml.YAMLError: If the configuration file is not valid YAML.
            ValueError: If the configuration file doesn't contain a dictionary.
        """
        if load_env:
            load_environment()

        config_file_path = Path(config_path)
        if not config_file_path.is_absolute():
            config_file_path = PROJECT_ROOT / config_file_path

        if not config_file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file_path}")

        try:
            with open(config_file_path, "r", encoding="utf-8") as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise yaml.YAMLError(
                f"Failed to parse configuration file: {config_file_path}"
            ) from e

        if not isinstance(config_dict, dict):
            raise ValueError("Configuration file must contain a YAML dictionary")

        merged = Config._merge_defaults(config_dict)
        for path_key in Config._RELATIVE_PATH_KEYS:
            Config._resolve_nested_path(merged, path_key, PROJECT_ROOT)

        return RouterConfig(**merged)

    @staticmethod
    def validate(config: RouterConfig) -> List[str]:
        """Validate value ranges and tier overrides.

        Args:
            config: RouterConfig object to validate.

        Returns:
            List of error messages. Empty list if the configuration is valid.
        """
        # Imported here to keep the loader free of import cycles
        from ..tiers.model_catalog import AI_MODELS, OCR_PROVIDERS
        from ..tiers.tier_config import TIER_CONFIGS

        errors: List[str] = []

        timeout = config.routing.get("attempt_timeout_seconds")
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            errors.append(
                f"routing.attempt_timeout_seconds must be positive, got {timeout!r}"
            )

        max_parallel = config.analysis.get("max_parallel")
        if not isinstance(max_parallel, int) or max_parallel < 1:
            errors.append(
                f"analysis.max_parallel must be an integer >= 1, got {max_parallel!r}"
            )

        backend = config.metrics.get("backend")
        if backend not in ("memory", "sqlite"):
            errors.append(f"metrics.backend must be 'memory' or 'sqlite', got {backend!r}")
        elif backend == "sqlite" and not config.metrics.get("db_path"):
            errors.append("metrics.db_path is required for the sqlite backend")

        level = str(config.logging.get("level", "")).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"logging.level is not a valid level: {level!r}")

        for plan_name, override in config.tiers.items():
            if plan_name not in TIER_CONFIGS:
                errors.append(f"tiers.{plan_name}: unknown plan")
                continue
            for model_id in (override or {}).get("models", []):
                if model_id not in AI_MODELS:
                    errors.append(f"tiers.{plan_name}.models: unknown model {model_id!r}")
            for ocr_id in (override or {}).get("ocr", []):
                if ocr_id not in OCR_PROVIDERS:
                    errors.append(f"tiers.{plan_name}.ocr: unknown OCR provider {ocr_id!r}")

        return errors
