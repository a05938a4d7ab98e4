"""FastAPI middleware: request ID injection and rate limiting."""

from __future__ import annotations

import time
import uuid
from collections import deque
from typing import TYPE_CHECKING

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

logger = structlog.get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Adds a unique X-Request-ID header to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding-window limiter keyed by client IP.

    Allows `max_requests` per IP within `window_seconds` on paths starting
    with `prefix`. Once per window, IPs with no hit left inside the window
    are dropped, so the map only holds recently active clients.
    """

    def __init__(
        self,
        app: object,
        max_requests: int = 60,
        window_seconds: int = 60,
        prefix: str = "/api/",
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._max_requests = max_requests
        self._window = window_seconds
        self._prefix = prefix
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep: float | None = None

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(self._prefix):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.monotonic()
        if self._last_sweep is None or now - self._last_sweep >= self._window:
            self._sweep(now)

        hits = self._hits.get(client_ip) or deque()
        self._expire(hits, now)
        if len(hits) >= self._max_requests:
            if hits:
                self._hits[client_ip] = hits
            logger.warning("rate_limit_exceeded", ip=client_ip, path=request.url.path)
            return JSONResponse(
                {"detail": "Rate limit exceeded. Try again later.", "code": "RATE_LIMITED"},
                status_code=429,
                headers={"Retry-After": str(self._window)},
            )

        hits.append(now)
        self._hits[client_ip] = hits
        return await call_next(request)

    def _expire(self, hits: deque[float], now: float) -> None:
        while hits and now - hits[0] >= self._window:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        """Forget every IP whose hits have all left the window."""
        self._last_sweep = now
        for ip in list(self._hits):
            hits = self._hits[ip]
            self._expire(hits, now)
            if not hits:
                del self._hits[ip]
