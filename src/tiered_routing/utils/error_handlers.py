"""
Error handling utilities for the tiered routing engine.

This module provides the exception hierarchy and helper functions used across
tier resolution, provider routing, OCR extraction and metrics recording.

Classes:
    RoutingError: Base exception for all routing engine errors.
    ProviderError: Exception raised by a vendor adapter call.
    ProviderNotConfiguredError: Exception for adapters missing credentials.
    OCRError: Exception for OCR-specific errors.
    ConfigurationError: Exception for configuration errors.
    MetricsStoreError: Exception for metrics persistence errors.
    RoutingCancelledError: Exception surfaced when a caller cancels a route.

Functions:
    log_error_with_context: Log error with full context for debugging.
    create_error_report: Create structured error report for storage/analysis.
    is_retriable_error: Determine if an error looks transient.
"""

import logging
import traceback
from datetime import datetime
from typing import Any, Dict, Optional


class RoutingError(Exception):
    """
    Base exception for routing engine errors.

    Attributes:
        message: Error message describing what went wrong.
        provider: Optional vendor name involved in the failure.
        stage: Optional routing stage where the error occurred.
        recoverable: Whether the next candidate may still succeed.
        original_error: Optional underlying exception that was wrapped.
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        stage: Optional[str] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize RoutingError.

        Args:
            message: Error message describing the issue.
            provider: Optional vendor name.
            stage: Optional routing stage name.
            recoverable: Whether the failure can be absorbed by fallback.
            original_error: Optional underlying exception that caused this error.
        """
        self.message = message
        self.provider = provider
        self.stage = stage
        self.recoverable = recoverable
        self.original_error = original_error
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for logging and storage.

        Returns:
            Dictionary containing error_type, message, provider, stage,
            recoverable status, and original error information if available.
        """
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "provider": self.provider,
            "stage": self.stage,
            "recoverable": self.recoverable,
        }

        if self.original_error:
            result["original_error_type"] = type(self.original_error).__name__
            result["original_error_message"] = str(self.original_error)

        return result


class ProviderError(RoutingError):
    """
    Exception raised when a vendor adapter call fails.

    Attributes:
        model: Optional concrete model identifier that was called.
        status_code: Optional HTTP status code reported by the vendor.
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        status_code: Optional[int] = None,
        recoverable: bool = True,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            provider=provider,
            stage="provider_call",
            recoverable=recoverable,
            original_error=original_error,
        )
        self.model = model
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary including model and status code.

        Returns:
            Dictionary with all base fields plus model and status_code.
        """
        result = super().to_dict()
        result["model"] = self.model
        result["status_code"] = self.status_code
        return result


class ProviderNotConfiguredError(RoutingError):
    """
    Exception for calling an adapter whose credential is absent.

    The routing engine never raises this itself: unconfigured candidates are
    skipped before invocation. Adapters raise it when called directly.
    """

    def __init__(self, provider: str, reason: Optional[str] = None):
        super().__init__(
            message=reason or f"Provider '{provider}' is not configured",
            provider=provider,
            stage="configuration",
            recoverable=False,
        )


class OCRError(RoutingError):
    """
    Exception for OCR-specific errors.

    Attributes:
        ocr_engine: Optional OCR engine name that failed.
    """

    def __init__(
        self,
        message: str,
        ocr_engine: Optional[str] = None,
        recoverable: bool = True,  # the local extractor is always behind remote OCR
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize OCRError.

        Args:
            message: Error message describing the OCR issue.
            ocr_engine: Optional name of OCR engine that failed.
            recoverable: Whether error can be recovered (defaults to True).
            original_error: Optional underlying exception that caused this error.
        """
        super().__init__(
            message=message,
            provider=ocr_engine,
            stage="ocr_extraction",
            recoverable=recoverable,
            original_error=original_error,
        )
        self.ocr_engine = ocr_engine

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["ocr_engine"] = self.ocr_engine
        return result


class ConfigurationError(RoutingError):
    """
    Exception for configuration errors.

    Attributes:
        config_key: Optional configuration key that is invalid.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            stage="configuration",
            recoverable=False,
            original_error=original_error,
        )
        self.config_key = config_key

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["config_key"] = self.config_key
        return result


class MetricsStoreError(RoutingError):
    """
    Exception for metrics persistence errors.

    Attributes:
        operation: Optional store operation that failed (get, put, delete).
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            stage="metrics",
            recoverable=True,
            original_error=original_error,
        )
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["operation"] = self.operation
        return result


class RoutingCancelledError(RoutingError):
    """
    Exception surfaced when the caller cancels an in-progress route.

    Attributes:
        attempted: Number of candidates that were attempted before cancellation.
    """

    def __init__(self, message: str = "Routing cancelled", attempted: int = 0):
        super().__init__(message=message, stage="routing", recoverable=False)
        self.attempted = attempted

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["attempted"] = self.attempted
        return result


def log_error_with_context(
    error: Exception,
    context: Dict[str, Any],
    logger: Optional[logging.Logger] = None,
) -> None:
    """
    Log error with full context for debugging.

    Args:
        error: The exception that occurred.
        context: Additional context (plan, candidate, request kind, ...).
        logger: Optional logger instance. Uses module logger when omitted.
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    provider = context.get("provider", "unknown")
    logger.error(f"Error with provider {provider}: [{type(error).__name__}] {error}")

    if isinstance(error, RoutingError):
        if error.stage:
            logger.error(f"  Stage: {error.stage}")
        logger.error(f"  Recoverable: {error.recoverable}")
        if error.original_error:
            original_type = type(error.original_error).__name__
            logger.error(f"  Original error: [{original_type}] {error.original_error}")

    for key, value in context.items():
        if key != "provider":
            logger.error(f"  {key}: {value}")

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Stack trace:")
        logger.debug(traceback.format_exc())


def create_error_report(
    error: Exception,
    timestamp: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Create a structured error report for storage and analysis.

    Args:
        error: The exception that occurred.
        timestamp: Optional timestamp for the error. Defaults to current time.

    Returns:
        A dictionary with error_type, error_message, traceback, timestamp and,
        for RoutingError instances, every field from ``to_dict``.

    Example:
        >>> report = create_error_report(OCRError("engine crashed", ocr_engine="local"))
        >>> report["error_type"]
        'OCRError'
    """
    if timestamp is None:
        timestamp = datetime.now()

    report = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "traceback": traceback.format_exc(),
        "timestamp": timestamp.isoformat(),
    }

    if isinstance(error, RoutingError):
        report.update(error.to_dict())

    return report


def is_retriable_error(error: Exception) -> bool:
    """
    Determine if an error looks transient.

    The routing engine does not retry, it only uses this to label failures in
    logs so operators can tell vendor outages from permanent misconfiguration.

    Args:
        error: The exception to evaluate.

    Returns:
        True for network errors, timeouts, rate limits and RoutingError
        instances flagged recoverable, False otherwise.
    """
    if isinstance(error, RoutingError):
        if error.original_error is not None:
            return is_retriable_error(error.original_error) or error.recoverable
        return error.recoverable

    if isinstance(error, (ConnectionError, TimeoutError)):
        return True

    if getattr(error, "status_code", None) in (429, 500, 502, 503, 504):
        return True

    error_str = str(error).lower()
    transient_keywords = [
        "rate limit",
        "too many requests",
        "timeout",
        "timed out",
        "service unavailable",
        "gateway timeout",
        "bad gateway",
        "connection",
    ]
    return any(keyword in error_str for keyword in transient_keywords)
