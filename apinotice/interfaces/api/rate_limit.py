"""Fixed-window request throttling keyed by client address."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int


class FixedWindowRateLimiter:
    """Count requests per key inside windows that expire ``window`` seconds after opening."""

    def __init__(
        self,
        limit: int,
        window: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")
        self.limit = limit
        self.window = window
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitDecision:
        """Record one request for ``key`` and report whether it is allowed."""

        now = self._clock()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                window = _Window(count=0, reset_at=now + self.window)
                self._windows[key] = window
            window.count += 1
            count = window.count
            reset_at = window.reset_at
        return RateLimitDecision(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_after=max(0, math.ceil(reset_at - now)),
        )

    def purge_expired(self) -> int:
        """Drop windows that have expired; return how many were removed."""

        now = self._clock()
        with self._lock:
            expired = [key for key, window in self._windows.items() if now >= window.reset_at]
            for key in expired:
                del self._windows[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


def client_key(request: Request) -> str:
    """Identify the caller by the first forwarded address, else the peer host."""

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject callers exceeding the limiter budget with ``429``."""

    def __init__(self, app, *, limiter: FixedWindowRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter
        self._last_purge = 0.0

    async def dispatch(self, request: Request, call_next):
        now = time.monotonic()
        if now - self._last_purge >= self.limiter.window:
            self._last_purge = now
            self.limiter.purge_expired()

        decision = self.limiter.hit(client_key(request))
        headers = {
            "X-RateLimit-Limit": str(decision.limit),
            "X-RateLimit-Remaining": str(decision.remaining),
            "X-RateLimit-Reset": str(decision.reset_after),
        }
        if not decision.allowed:
            logger.warning("Rate limit exceeded for %s %s", request.method, request.url.path)
            return PlainTextResponse("rate limit exceeded", status_code=429, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response


__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitDecision",
    "RateLimitMiddleware",
    "client_key",
]
