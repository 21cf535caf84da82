"""Baseline security headers attached to every response."""

from __future__ import annotations

from collections.abc import Mapping

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

DEFAULT_SECURITY_HEADERS: Mapping[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none'",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Set headers that the handler did not already provide."""

    def __init__(self, app, *, headers: Mapping[str, str] | None = None) -> None:
        super().__init__(app)
        self.headers = dict(DEFAULT_SECURITY_HEADERS if headers is None else headers)

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


__all__ = ["DEFAULT_SECURITY_HEADERS", "SecurityHeadersMiddleware"]
