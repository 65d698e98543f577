"""
Rate Limiting Unit Tests

Tests for token bucket, rate limiter and middleware functionality.
"""

import time
from unittest.mock import MagicMock


def _request(host="127.0.0.1", headers=None):
    request = MagicMock()
    request.client.host = host
    request.headers = headers or {}
    return request


class TestTokenBucket:
    """Tests for TokenBucket implementation."""

    def test_initial_tokens_at_capacity(self):
        """Verify bucket starts at full capacity."""
        from cohort_lms.middleware.rate_limit import TokenBucket

        bucket = TokenBucket(capacity=10, refill_rate=1.0)

        assert bucket.tokens == 10.0

    def test_consume_fails_when_empty(self):
        """Verify consume fails when insufficient tokens."""
        from cohort_lms.middleware.rate_limit import TokenBucket

        bucket = TokenBucket(capacity=2, refill_rate=0.1)

        assert bucket.consume(2) is True
        assert bucket.consume(1) is False

    def test_seconds_until_available(self):
        """Verify the wait is derived from the refill rate."""
        from cohort_lms.middleware.rate_limit import TokenBucket

        bucket = TokenBucket(capacity=1, refill_rate=0.1)
        bucket.consume(1)

        assert 1 <= bucket.seconds_until_available() <= 10


class TestRateLimiter:
    """Tests for RateLimiter implementation."""

    def test_blocks_after_window_budget(self):
        """Verify the request after the budget is rejected with a retry delay."""
        from cohort_lms.middleware.rate_limit import RateLimiter

        limiter = RateLimiter(max_requests=3, window_seconds=900)

        for _ in range(3):
            assert limiter.check("ip:1.2.3.4") is None

        retry_after = limiter.check("ip:1.2.3.4")
        assert retry_after is not None
        assert retry_after >= 1

    def test_clients_have_separate_buckets(self):
        """Verify one client's usage does not affect another."""
        from cohort_lms.middleware.rate_limit import RateLimiter

        limiter = RateLimiter(max_requests=1, window_seconds=900)

        assert limiter.check("ip:10.0.0.1") is None
        assert limiter.check("ip:10.0.0.2") is None
        assert limiter.check("ip:10.0.0.1") is not None

    def test_key_uses_token_subject(self):
        """Verify authenticated requests are keyed by user ID."""
        import uuid

        from cohort_lms.core.security import create_access_token
        from cohort_lms.middleware.rate_limit import RateLimiter

        user_id = uuid.uuid4()
        token = create_access_token(user_id)
        request = _request(headers={"Authorization": f"Bearer {token}"})

        assert RateLimiter().get_key(request) == f"user:{user_id}"

    def test_key_falls_back_to_ip(self):
        """Verify invalid tokens and anonymous requests are keyed by IP."""
        from cohort_lms.middleware.rate_limit import RateLimiter

        limiter = RateLimiter()

        assert limiter.get_key(_request(host="10.1.1.1")) == "ip:10.1.1.1"
        assert limiter.get_key(_request(headers={"Authorization": "Bearer junk"})) == "ip:127.0.0.1"
        forwarded = _request(headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
        assert limiter.get_key(forwarded) == "ip:203.0.113.9"

    def test_cleanup_removes_stale_buckets(self):
        """Verify cleanup removes old buckets."""
        from cohort_lms.middleware.rate_limit import RateLimiter

        limiter = RateLimiter(max_requests=5, window_seconds=60)
        limiter.check("ip:10.0.0.1")
        limiter._buckets["ip:10.0.0.1"].last_refill = time.time() - 7200

        removed = limiter.cleanup(max_age=3600)

        assert removed == 1
        assert len(limiter._buckets) == 0


class TestRateLimitMiddleware:
    """Tests for the 429 response path."""

    def _client(self, max_requests):
        from fastapi import FastAPI
        from fastapi.testclient import TestClient

        from cohort_lms.middleware.rate_limit import RateLimiter, RateLimitMiddleware

        app = FastAPI()
        app.add_middleware(RateLimitMiddleware, limiter=RateLimiter(max_requests=max_requests, window_seconds=900))

        @app.get("/api/v1/ping")
        async def ping():
            return {"ok": True}

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        return TestClient(app)

    def test_returns_429_with_retry_after(self):
        """Verify an exhausted client gets 429 and a Retry-After header."""
        client = self._client(max_requests=2)

        assert client.get("/api/v1/ping").status_code == 200
        assert client.get("/api/v1/ping").status_code == 200
        response = client.get("/api/v1/ping")

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1
        assert "Too many requests" in response.json()["detail"]

    def test_health_is_exempt(self):
        """Verify health checks are never limited."""
        client = self._client(max_requests=1)

        for _ in range(3):
            assert client.get("/health").status_code == 200
