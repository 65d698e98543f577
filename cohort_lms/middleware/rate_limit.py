"""
Rate Limiting Middleware

Token bucket rate limiter applied to every API request.

Features:
- Per-client buckets keyed by user ID when a bearer token is present,
  otherwise by IP address
- A full bucket holds one window's worth of requests and refills
  continuously over the window
- 429 responses carry a Retry-After header
"""

import math
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from cohort_lms.core.config import settings
from cohort_lms.core.security import subject_from_token


EXEMPT_PATHS = {"/health", "/", "/docs", "/redoc", "/openapi.json"}


# ============== Token Bucket Implementation ==============

@dataclass
class TokenBucket:
    """Token bucket for rate limiting."""
    capacity: int          # Maximum tokens
    refill_rate: float     # Tokens per second
    tokens: float = field(default=0, init=False)
    last_refill: float = field(default=0, init=False)

    def __post_init__(self):
        self.tokens = float(self.capacity)
        self.last_refill = time.time()

    def consume(self, tokens: int = 1) -> bool:
        """
        Attempt to consume tokens.

        Returns:
            True if tokens were available, False otherwise.
        """
        self._refill()

        if self.tokens >= tokens:
            self.tokens -= tokens
            return True
        return False

    def seconds_until_available(self, tokens: int = 1) -> int:
        """Whole seconds until ``tokens`` can be consumed."""
        self._refill()
        missing = tokens - self.tokens
        if missing <= 0 or self.refill_rate <= 0:
            return 0
        return math.ceil(missing / self.refill_rate)

    def _refill(self) -> None:
        """Refill tokens based on elapsed time."""
        now = time.time()
        elapsed = now - self.last_refill

        self.tokens = min(
            self.capacity,
            self.tokens + (elapsed * self.refill_rate)
        )
        self.last_refill = now


# ============== Rate Limiter ==============

class RateLimiter:
    """
    Per-client rate limiter using token bucket algorithm.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: int = 900,
    ):
        """
        Args:
            max_requests: Requests allowed per window (also the burst size).
            window_seconds: Window length in seconds.
        """
        self._buckets: Dict[str, TokenBucket] = {}
        self._capacity = max_requests
        self._refill_rate = max_requests / float(window_seconds)

    def get_key(self, request: Request) -> str:
        """
        Rate limit key for a request.

        Uses the token's user ID if present, otherwise the client IP.
        """
        authorization = request.headers.get("Authorization", "")
        if authorization.lower().startswith("bearer "):
            user_id = subject_from_token(authorization[7:].strip())
            if user_id is not None:
                return f"user:{user_id}"

        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            ip = forwarded.split(",")[0].strip()
        else:
            ip = request.client.host if request.client else "unknown"

        return f"ip:{ip}"

    def _get_bucket(self, key: str) -> TokenBucket:
        """Get or create bucket for key."""
        if key not in self._buckets:
            self._buckets[key] = TokenBucket(
                capacity=self._capacity,
                refill_rate=self._refill_rate,
            )
        return self._buckets[key]

    def check(self, key: str) -> Optional[int]:
        """
        Consume one request for ``key``.

        Returns:
            None if allowed, otherwise the Retry-After value in seconds.
        """
        bucket = self._get_bucket(key)
        if bucket.consume():
            return None
        return max(1, bucket.seconds_until_available())

    def cleanup(self, max_age: float = 3600) -> int:
        """
        Remove stale buckets.

        Returns:
            Number of buckets removed.
        """
        now = time.time()
        stale_keys = [
            key for key, bucket in self._buckets.items()
            if (now - bucket.last_refill) > max_age
        ]

        for key in stale_keys:
            del self._buckets[key]

        return len(stale_keys)


default_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
)


# ============== Middleware ==============

class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware that applies rate limiting to all non-exempt requests.
    """

    def __init__(self, app, limiter: Optional[RateLimiter] = None):
        super().__init__(app)
        self.limiter = limiter or default_limiter

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        retry_after = self.limiter.check(self.limiter.get_key(request))
        if retry_after is not None:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"detail": "Too many requests from this client, please try again later."},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)
