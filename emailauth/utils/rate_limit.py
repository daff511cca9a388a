"""
Simple in-memory burst limiter for the hosted scan endpoint.

Counts requests per client identity in fixed 60-second windows.  State is
per process and best-effort: it is not shared between workers and is lost
on restart, which is acceptable for abuse mitigation on a public lookup
tool.

Usage:
    from emailauth.utils.rate_limit import is_rate_limited

    # Inside a Flask route:
    if is_rate_limited(client_ip, limit=30):
        return jsonify({"error": "Rate limit exceeded. Try again shortly."}), 429
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Final

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_DEFAULT_LIMIT: Final[int] = 30
_WINDOW_SECONDS: Final[int] = 60


class FixedWindowRateLimiter:
    """Fixed-window counter keyed by ``(client_id, window index)``.

    Counters for windows older than the current one are evicted whenever
    the window advances, so the map never holds more than one window's
    worth of clients.
    """

    def __init__(
        self,
        limit: int = _DEFAULT_LIMIT,
        window_seconds: int = _WINDOW_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # Example entry: ("203.0.113.7", 28_333_333) -> 4
        self._hits: dict[tuple[str, int], int] = {}
        self._current_window: int | None = None

    def _window(self) -> int:
        now = self._clock() if self._clock is not None else time.time()
        return int(now // self.window_seconds)

    def hit(self, client_id: str, limit: int | None = None) -> bool:
        """Record a request from *client_id*.

        Args:
            client_id: Client identity, usually the remote IP address.
            limit: Optional per-call threshold overriding ``self.limit``.

        Returns:
            True  - the post-increment count exceeds the limit; reject.
            False - the request is allowed.
        """
        threshold = self.limit if limit is None else limit
        window = self._window()
        key = (client_id, window)

        with self._lock:
            if window != self._current_window:
                self._evict_before(window)
                self._current_window = window
            count = self._hits.get(key, 0) + 1
            self._hits[key] = count

        if count > threshold:
            logger.warning(
                "Rate limit active: client=%r window=%d count=%d limit=%d",
                client_id,
                window,
                count,
                threshold,
            )
            return True
        return False

    def _evict_before(self, window: int) -> None:
        stale = [key for key in self._hits if key[1] < window]
        for key in stale:
            del self._hits[key]
        if stale:
            logger.debug("Evicted %d stale rate-limit counters", len(stale))

    def reset(self, client_id: str) -> None:
        """Clear every counter held for *client_id*."""
        with self._lock:
            for key in [k for k in self._hits if k[0] == client_id]:
                del self._hits[key]

    def clear(self) -> None:
        with self._lock:
            self._hits.clear()
            self._current_window = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)


# ---------------------------------------------------------------------------
# Process-wide limiter
# ---------------------------------------------------------------------------

_limiter = FixedWindowRateLimiter()


def is_rate_limited(client_id: str, limit: int = _DEFAULT_LIMIT) -> bool:
    """Return True if *client_id* has exceeded *limit* requests this minute."""
    return _limiter.hit(client_id, limit=limit)


def reset_rate_limit(client_id: str) -> None:
    """Clear the counters for a specific client.

    Primarily useful in tests to avoid cross-test interference.
    """
    _limiter.reset(client_id)


def clear_all_rate_limits() -> None:
    """Remove all rate-limit records."""
    _limiter.clear()
