"""
Campus Tasker Backend - Rate Limiting Middleware
================================================

What:  Per-client sliding-window request limiter.
How:   Keeps the timestamps of each client's requests inside the window.
       When a client already has `max_requests` of them, the request is
       answered with 429 and a Retry-After header, and never reaches a route.

Client key:
    "ip:<address>". The Authorization header is never used: it is not
    verified until a route runs.

Runs inside RequestIDMiddleware, so the 429 body carries the request id
like every other error body.

State lives in the process. Several workers each enforce their own budget.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from tasker.config import settings
from tasker.exceptions import RateLimitExceededError
from tasker.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# How many recorded requests between sweeps of idle clients
SWEEP_EVERY = 1000


def client_key(request: Request) -> str:
    """Identify the client by its IP address."""
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


def rate_limit_response(exc: RateLimitExceededError) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": exc.message,
            "request_id": request_id_var.get(""),
            "details": {"retry_after": exc.retry_after},
        },
        headers={"Retry-After": str(exc.retry_after)},
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding-window limiter.

    max_requests / window_seconds default to RATE_LIMIT_REQUESTS and
    RATE_LIMIT_WINDOW; tests pass small values directly.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
    ):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        key = client_key(request)
        try:
            self.hit(key, time.monotonic())
        except RateLimitExceededError as exc:
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds",
                key, self.max_requests, self.window_seconds,
            )
            return rate_limit_response(exc)

        return await call_next(request)

    def hit(self, key: str, now: float) -> None:
        """
        Record one request for `key` at time `now`.

        Raises:
            RateLimitExceededError: The client is over budget; nothing is recorded.
        """
        hits = self._hits[key]
        window_start = now - self.window_seconds
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.max_requests:
            retry_after = int(hits[0] + self.window_seconds - now) + 1
            raise RateLimitExceededError(retry_after=retry_after, context={"client": key})

        hits.append(now)
        self._recorded += 1
        if self._recorded % SWEEP_EVERY == 0:
            self._sweep(window_start)

    def _sweep(self, window_start: float) -> None:
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("Dropped %d idle rate-limit entries", len(idle))
