from __future__ import annotations

import asyncio
import math
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

DEFAULT_EXEMPT = ("/health",)


def client_key(request: Request) -> str:
    client = request.client
    return client.host if client else "unknown"


def forwarded_client_key(request: Request) -> str:
    """First address in X-Forwarded-For, else the socket peer.

    Only safe behind a proxy that overwrites the header.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return client_key(request)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Sliding-window limit on requests per client address.

    Keeps score submissions from a single client from flooding the store.
    """

    def __init__(
        self,
        app,
        *,
        requests: int = 120,
        window_seconds: int = 60,
        key_func: Callable[[Request], str] | None = None,
        exempt_paths: Iterable[str] = DEFAULT_EXEMPT,
        trust_forwarded_for: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(app)
        self.requests = max(1, requests)
        self.window = max(1, window_seconds)
        self.key_func = key_func or (forwarded_client_key if trust_forwarded_for else client_key)
        self.exempt_paths = frozenset(exempt_paths)
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_cleanup = clock()

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        identifier = self.key_func(request)
        now = self._clock()
        earliest = now - self.window

        async with self._lock:
            self._maybe_cleanup(now)
            timestamps = self._hits[identifier]
            while timestamps and timestamps[0] < earliest:
                timestamps.popleft()

            if len(timestamps) >= self.requests:
                retry_after = max(1, math.ceil(timestamps[0] + self.window - now))
                return JSONResponse(
                    {"message": "Too many requests. Please slow down and try again."},
                    status_code=429,
                    headers={"Retry-After": str(retry_after)},
                )

            timestamps.append(now)

        return await call_next(request)

    def _maybe_cleanup(self, now: float) -> None:
        """Forget clients idle for two windows to keep memory bounded."""
        if now - self._last_cleanup < self.window:
            return
        cutoff = now - self.window * 2
        for key in [k for k, ts in self._hits.items() if not ts or ts[-1] < cutoff]:
            del self._hits[key]
        self._last_cleanup = now
