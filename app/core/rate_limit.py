"""
Simple in-memory rate limiting for API endpoints
"""
from fastapi import HTTPException, status, Request
from datetime import datetime, timedelta
from collections import defaultdict
import logging
import threading

logger = logging.getLogger(__name__)

# Cleanup old entries every 5 minutes
_CLEANUP_INTERVAL = timedelta(minutes=5)


class RateLimiter:
    """
    Sliding-window limiter used as a FastAPI dependency.

    Requests are keyed by the bearer token when present, else the client IP.

    Usage:
        ai_limiter = RateLimiter(max_requests=20, window_seconds=300)

        @router.post("/describe", dependencies=[Depends(ai_limiter)])
        def describe(...):
            ...
    """

    def __init__(self, max_requests: int = 5, window_seconds: int = 300):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._store = defaultdict(list)
        self._lock = threading.Lock()
        self._last_cleanup = datetime.utcnow()

    def _identifier(self, request: Request) -> str:
        auth = request.headers.get("authorization")
        if auth:
            return f"token_{auth[-32:]}"
        return request.client.host if request.client else "unknown"

    def _cleanup(self, now: datetime) -> None:
        if now - self._last_cleanup < _CLEANUP_INTERVAL:
            return
        self._last_cleanup = now
        cutoff = now - timedelta(seconds=self.window_seconds)
        for key in list(self._store.keys()):
            self._store[key] = [ts for ts in self._store[key] if ts > cutoff]
            if not self._store[key]:
                del self._store[key]

    def reset(self) -> None:
        with self._lock:
            self._store.clear()

    def __call__(self, request: Request) -> None:
        identifier = self._identifier(request)
        now = datetime.utcnow()
        window_start = now - timedelta(seconds=self.window_seconds)

        with self._lock:
            self._cleanup(now)
            recent = [ts for ts in self._store[identifier] if ts > window_start]
            if len(recent) >= self.max_requests:
                logger.warning(f"[RATE_LIMIT] {request.url.path} exceeded by {identifier[:16]}")
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=f"Rate limit exceeded: {self.max_requests} requests per {self.window_seconds} seconds. Please try again later."
                )
            recent.append(now)
            self._store[identifier] = recent


# Shared limiters
invite_limiter = RateLimiter(max_requests=20, window_seconds=900)
ai_limiter = RateLimiter(max_requests=20, window_seconds=300)
diagnostics_limiter = RateLimiter(max_requests=10, window_seconds=300)
