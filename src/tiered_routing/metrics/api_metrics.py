"""
Per-provider request metrics.

One ApiMetrics row exists per vendor name. Rows are value objects: recording a
sample returns a new row, so a store only ever sees complete rows.
"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class ApiMetrics:
    """Aggregated request statistics for one provider.

    Invariant: ``success_count + error_count == request_count``.

    Attributes:
        provider_name: Vendor name the row is keyed by.
        request_count: Total recorded attempts.
        success_count: Successful attempts.
        error_count: Failed attempts.
        total_latency_ms: Sum of attempt latencies.
        avg_latency_ms: Rounded mean latency.
        min_latency_ms: Fastest attempt.
        max_latency_ms: Slowest attempt.
        last_request_at: UTC time of the last attempt.
        last_error_at: UTC time of the last failed attempt.
        last_error_message: Error message of the last failed attempt.
        created_at: UTC time the row was created.
    """

    provider_name: str
    request_count: int
    success_count: int
    error_count: int
    total_latency_ms: int
    avg_latency_ms: int
    min_latency_ms: int
    max_latency_ms: int
    last_request_at: datetime
    last_error_at: Optional[datetime] = None
    last_error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def first_sample(
        cls,
        provider_name: str,
        latency_ms: int,
        success: bool,
        error_message: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "ApiMetrics":
        """Create the row for a provider's first recorded attempt."""
        now = now or _utcnow()
        latency_ms = max(int(latency_ms), 0)
        return cls(
            provider_name=provider_name,
            request_count=1,
            success_count=1 if success else 0,
            error_count=0 if success else 1,
            total_latency_ms=latency_ms,
            avg_latency_ms=latency_ms,
            min_latency_ms=latency_ms,
            max_latency_ms=latency_ms,
            last_request_at=now,
            last_error_at=None if success else now,
            last_error_message=None if success else error_message,
            created_at=now,
        )

    def with_sample(
        self,
        latency_ms: int,
        success: bool,
        error_message: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "ApiMetrics":
        """Return a new row with one more attempt folded in."""
        now = now or _utcnow()
        latency_ms = max(int(latency_ms), 0)
        request_count = self.request_count + 1
        total_latency = self.total_latency_ms + latency_ms

        changes: Dict[str, Any] = {
            "request_count": request_count,
            "success_count": self.success_count + (1 if success else 0),
            "error_count": self.error_count + (0 if success else 1),
            "total_latency_ms": total_latency,
            "avg_latency_ms": round(total_latency / request_count),
            "min_latency_ms": min(self.min_latency_ms, latency_ms),
            "max_latency_ms": max(self.max_latency_ms, latency_ms),
            "last_request_at": now,
        }
        if not success:
            changes["last_error_at"] = now
            changes["last_error_message"] = error_message

        return dataclasses.replace(self, **changes)

    @property
    def success_rate(self) -> float:
        return self.success_count / self.request_count if self.request_count else 0.0

    def to_dict(self) -> Dict[str, Any]:
        result = dataclasses.asdict(self)
        for key in ("last_request_at", "last_error_at", "created_at"):
            value = result[key]
            result[key] = value.isoformat() if value else None
        return result

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> "ApiMetrics":
        """Create ApiMetrics from a store record.

        Args:
            record: Dictionary with ISO-formatted timestamps.

        Returns:
            ApiMetrics instance with parsed values.
        """
        return cls(
            provider_name=record["provider_name"],
            request_count=int(record["request_count"]),
            success_count=int(record["success_count"]),
            error_count=int(record["error_count"]),
            total_latency_ms=int(record["total_latency_ms"]),
            avg_latency_ms=int(record["avg_latency_ms"]),
            min_latency_ms=int(record["min_latency_ms"]),
            max_latency_ms=int(record["max_latency_ms"]),
            last_request_at=_parse_timestamp(record["last_request_at"]),
            last_error_at=_parse_timestamp(record.get("last_error_at")),
            last_error_message=record.get("last_error_message"),
            created_at=_parse_timestamp(record.get("created_at")),
        )
