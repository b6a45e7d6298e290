"""
Metrics recorder for provider attempts.

Every routed attempt, successful or not, is folded into its vendor's ApiMetrics
row with a read-modify-write under a per-provider lock, so concurrent routes
never lose an update. Store failures are logged and swallowed: metrics must
never block or fail the request path.
"""

import logging
import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from .api_metrics import ApiMetrics
from .metrics_store import InMemoryMetricsStore, MetricsStore

logger = logging.getLogger(__name__)


class MetricsRecorder:
    """
    Record attempts and expose ApiMetrics rows read-only.

    Attributes:
        store: Injected metrics store.

    Example:
        >>> recorder = MetricsRecorder(InMemoryMetricsStore())
        >>> _ = recorder.record("openai", latency_ms=420, success=True)
        >>> recorder.get_metrics("openai").request_count
        1
    """

    def __init__(self, store: Optional[MetricsStore] = None) -> None:
        self.store: MetricsStore = store or InMemoryMetricsStore()
        self._locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _lock_for(self, provider_name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[provider_name]

    def record(
        self,
        provider_name: str,
        latency_ms: int,
        success: bool,
        error_message: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[ApiMetrics]:
        """
        Fold one attempt into the provider's row.

        Args:
            provider_name: Vendor name (not the model id).
            latency_ms: Attempt latency measured by the engine.
            success: Whether the attempt succeeded.
            error_message: Failure reason for unsuccessful attempts.
            now: Optional timestamp, mainly for tests.

        Returns:
            The updated row, or None if the store could not be read. Never
            raises because of a store failure.
        """
        with self._lock_for(provider_name):
            try:
                current = self.store.get(provider_name)
            except Exception as e:
                logger.error(
                    f"Failed to read API metrics for {provider_name}: {e}", exc_info=True
                )
                return None

            if current is None:
                updated = ApiMetrics.first_sample(
                    provider_name, latency_ms, success, error_message, now
                )
            else:
                updated = current.with_sample(latency_ms, success, error_message, now)

            try:
                self.store.put(updated)
            except Exception as e:
                logger.error(
                    f"Failed to record API metrics for {provider_name}: {e}", exc_info=True
                )

        logger.debug(
            f"Recorded {provider_name} attempt: success={success}, latency={latency_ms}ms "
            f"(requests={updated.request_count})"
        )
        return updated

    def get_metrics(self, provider_name: str) -> Optional[ApiMetrics]:
        return self.store.get(provider_name)

    def list_metrics(self) -> List[ApiMetrics]:
        """Return every provider row for dashboards."""
        return self.store.list_all()

    def reset_metrics(self, provider_name: str) -> bool:
        """Delete a provider's row. Returns True if a row existed."""
        with self._lock_for(provider_name):
            removed = self.store.delete(provider_name)
        if removed:
            logger.info(f"Reset API metrics for {provider_name}")
        return removed

    def close(self) -> None:
        self.store.close()
