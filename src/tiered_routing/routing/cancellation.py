"""Cooperative cancellation for routed requests.

The routing engine checks the token before starting each candidate and after
each attempt finishes. An attempt already in flight is never interrupted: it
completes, its metrics are recorded, and only then is the cancellation raised.
"""

import threading


class CancellationToken:
    """Thread-safe cancellation flag.

    Examples:
        >>> token = CancellationToken()
        >>> token.is_cancelled()
        False
        >>> token.cancel()
        >>> token.is_cancelled()
        True
    """

    def __init__(self) -> None:
        self._is_cancelled = threading.Event()

    def cancel(self) -> None:
        """Signal that cancellation has been requested."""
        self._is_cancelled.set()

    def is_cancelled(self) -> bool:
        return self._is_cancelled.is_set()

    def reset(self) -> None:
        """Clear the flag so the token can be reused."""
        self._is_cancelled.clear()
