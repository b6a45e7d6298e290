"""Logging configuration shared by the CLI and embedding applications."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = "INFO", stream: Optional[object] = None) -> None:
    """Configure root logging.

    Application output goes to stdout, logs go to stderr.

    Args:
        log_level: Logging level as string (DEBUG, INFO, WARNING, ERROR).
            Defaults to "INFO".
        stream: Optional stream for the handler. Defaults to ``sys.stderr``.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(stream or sys.stderr)],
        force=True,
    )


def mask_secret(secret: Optional[str]) -> str:
    """Mask a credential for logging as ``first8...last4``."""
    if not secret:
        return "<none>"
    return f"{secret[:8]}...{secret[-4:]}" if len(secret) > 12 else "***"
