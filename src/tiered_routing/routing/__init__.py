"""
Routing engine, attempt outcomes and cancellation.
"""

from .cancellation import CancellationToken
from .routing_engine import (
    AttemptOutcome,
    AttemptResult,
    Candidate,
    ChainResult,
    RoutingEngine,
    fold_attempts,
)

__all__ = [
    "AttemptOutcome",
    "AttemptResult",
    "Candidate",
    "CancellationToken",
    "ChainResult",
    "RoutingEngine",
    "fold_attempts",
]
