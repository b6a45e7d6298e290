"""
Per-provider API metrics: rows, stores and the recorder.
"""

from .api_metrics import ApiMetrics
from .metrics_recorder import MetricsRecorder
from .metrics_store import InMemoryMetricsStore, MetricsStore, SQLiteMetricsStore

__all__ = [
    "ApiMetrics",
    "InMemoryMetricsStore",
    "MetricsRecorder",
    "MetricsStore",
    "SQLiteMetricsStore",
]
