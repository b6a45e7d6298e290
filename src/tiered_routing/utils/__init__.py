"""
Shared utilities: error hierarchy, configuration loading and logging setup.
"""

from .config_loader import Config, RouterConfig, load_environment
from .error_handlers import (
    ConfigurationError,
    MetricsStoreError,
    OCRError,
    ProviderError,
    ProviderNotConfiguredError,
    RoutingCancelledError,
    RoutingError,
)
from .logging_setup import mask_secret, setup_logging

__all__ = [
    "Config",
    "RouterConfig",
    "load_environment",
    "ConfigurationError",
    "MetricsStoreError",
    "OCRError",
    "ProviderError",
    "ProviderNotConfiguredError",
    "RoutingCancelledError",
    "RoutingError",
    "mask_secret",
    "setup_logging",
]
