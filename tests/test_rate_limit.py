"""
Unit tests for emailauth/utils/rate_limit.py

A controllable clock replaces time.time so window boundaries are exact.
"""

from __future__ import annotations

import threading

from emailauth.utils.rate_limit import (
    FixedWindowRateLimiter,
    clear_all_rate_limits,
    is_rate_limited,
    reset_rate_limit,
)


class _Clock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_requests_up_to_limit_are_allowed_then_rejected():
    clock = _Clock(600.0)
    limiter = FixedWindowRateLimiter(limit=3, clock=clock)

    assert [limiter.hit("203.0.113.7") for _ in range(3)] == [False, False, False]
    assert limiter.hit("203.0.113.7") is True


def test_next_window_allows_again():
    clock = _Clock(600.0)
    limiter = FixedWindowRateLimiter(limit=30, clock=clock)

    for _ in range(30):
        assert limiter.hit("client") is False
    assert limiter.hit("client") is True

    clock.now = 660.0
    assert limiter.hit("client") is False


def test_window_is_floor_of_time_not_sliding():
    """Requests at :59 and :00 fall in different windows."""
    clock = _Clock(659.9)
    limiter = FixedWindowRateLimiter(limit=1, clock=clock)

    assert limiter.hit("client") is False
    clock.now = 660.0
    assert limiter.hit("client") is False


def test_clients_are_counted_separately():
    limiter = FixedWindowRateLimiter(limit=1, clock=_Clock())

    assert limiter.hit("a") is False
    assert limiter.hit("b") is False
    assert limiter.hit("a") is True


def test_per_call_limit_overrides_default():
    limiter = FixedWindowRateLimiter(limit=100, clock=_Clock())

    assert limiter.hit("a", limit=1) is False
    assert limiter.hit("a", limit=1) is True


def test_stale_windows_are_evicted():
    clock = _Clock(600.0)
    limiter = FixedWindowRateLimiter(limit=10, clock=clock)
    for client in ("a", "b", "c"):
        limiter.hit(client)
    assert len(limiter) == 3

    clock.now = 720.0
    limiter.hit("d")

    assert len(limiter) == 1


def test_reset_and_clear():
    limiter = FixedWindowRateLimiter(limit=1, clock=_Clock())
    limiter.hit("a")
    limiter.hit("b")

    limiter.reset("a")
    assert limiter.hit("a") is False
    assert limiter.hit("b") is True

    limiter.clear()
    assert len(limiter) == 0


def test_concurrent_hits_are_not_lost():
    limiter = FixedWindowRateLimiter(limit=10_000, clock=_Clock())
    rejected: list[bool] = []

    def worker():
        for _ in range(250):
            rejected.append(limiter.hit("shared"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not any(rejected)
    # 8 * 250 = 2000 recorded; the limit is hit exactly after 10_000 - 2000 more
    for _ in range(10_000 - 2000):
        assert limiter.hit("shared") is False
    assert limiter.hit("shared") is True


def test_module_level_helpers():
    clear_all_rate_limits()
    assert is_rate_limited("198.51.100.1", limit=1) is False
    assert is_rate_limited("198.51.100.1", limit=1) is True

    reset_rate_limit("198.51.100.1")
    assert is_rate_limited("198.51.100.1", limit=1) is False
