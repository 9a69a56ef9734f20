"""Fixed-window attempt limiter keyed by (scope, client identifier).

The store is process-local and non-durable; one instance is created by the
app lifespan and handed to routes through `get_rate_limit_store`. Expired
windows are purged at most once per `purge_interval` seconds.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import Request

PURGE_INTERVAL_SECONDS = 60.0


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimitStore:
    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        purge_interval: float = PURGE_INTERVAL_SECONDS,
    ):
        self._clock = clock
        self._purge_interval = purge_interval
        self._windows: dict[tuple[str, str], _Window] = {}
        self._lock = threading.Lock()
        self._next_purge = clock() + purge_interval

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def hit(self, scope: str, identifier: str, max_attempts: int, window_seconds: float) -> bool:
        """Record one attempt; return False once the window is exhausted."""
        now = self._clock()
        key = (scope, identifier)
        with self._lock:
            if now >= self._next_purge:
                self._purge_expired(now)
            window = self._windows.get(key)
            if window is None or now > window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + window_seconds)
                return True
            if window.count >= max_attempts:
                return False
            window.count += 1
            return True

    def _purge_expired(self, now: float) -> None:
        # caller holds the lock
        expired = [key for key, window in self._windows.items() if window.reset_at < now]
        for key in expired:
            del self._windows[key]
        self._next_purge = now + self._purge_interval

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def get_rate_limit_store(request: Request) -> RateLimitStore:
    return request.app.state.rate_limits


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"
