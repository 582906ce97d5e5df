"""
Unit tests for rate limiting.

Redis is mocked; the limiter's arithmetic, key building, fail-open path
and the middleware's 429 response are tested here.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from redis.exceptions import ConnectionError as RedisConnectionError
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from bugtracker.core.config import settings
from bugtracker.middleware import rate_limiter as rate_limiter_module
from bugtracker.middleware.rate_limiter import (
    AUTH_RATE_LIMITS,
    RateLimiter,
    rate_limit_config_for,
    RateLimitConfig,
    RateLimitResult,
    RateLimitMiddleware,
)
# Bound at import, before the autouse fixture swaps the module attribute
from bugtracker.middleware.rate_limiter import get_rate_limiter as real_get_rate_limiter


def redis_returning(count=None, error=None, ttl=60):
    """Mock async Redis whose pipeline INCR yields ``count`` or raises ``error``."""
    pipeline = MagicMock()
    if error is not None:
        pipeline.execute = AsyncMock(side_effect=error)
    else:
        pipeline.execute = AsyncMock(return_value=[True, count, ttl])
    redis = MagicMock()
    redis.pipeline = MagicMock(return_value=pipeline)
    return redis, pipeline


class TestRateLimitConfig:
    def test_default_values(self):
        config = RateLimitConfig()

        assert config.requests_per_window == 5
        assert config.window_seconds == 60
        assert config.key_prefix == "ratelimit"

    def test_every_auth_endpoint_is_limited(self):
        assert set(AUTH_RATE_LIMITS) == {
            "/auth/register/send-otp",
            "/auth/register/verify-otp",
            "/auth/login",
            "/auth/forgot-password",
            "/auth/reset-password",
            "/auth/resend-otp",
        }

    def test_config_lookup_strips_api_prefix(self):
        assert rate_limit_config_for("/api/auth/login") is AUTH_RATE_LIMITS["/auth/login"]
        assert rate_limit_config_for("/api/projects") is None
        assert rate_limit_config_for("/auth/login") is None

    def test_config_lookup_follows_configured_prefix(self, monkeypatch):
        monkeypatch.setattr(settings, "API_V1_PREFIX", "/v2")

        assert rate_limit_config_for("/v2/auth/login") is AUTH_RATE_LIMITS["/auth/login"]
        assert rate_limit_config_for("/api/auth/login") is None


class TestRateLimiter:
    @pytest.mark.asyncio
    async def test_first_request_allowed(self):
        redis, _ = redis_returning(1)
        limiter = RateLimiter(redis_client=redis)

        result = await limiter.check_rate_limit("192.168.1.1", "/api/auth/login")

        assert result.allowed is True
        assert result.remaining == 4
        assert result.limit == 5

    @pytest.mark.asyncio
    async def test_at_limit_allowed(self):
        redis, _ = redis_returning(5)

        result = await RateLimiter(redis_client=redis).check_rate_limit("ip", "/api/auth/login")

        assert result.allowed is True
        assert result.remaining == 0

    @pytest.mark.asyncio
    async def test_over_limit_denied(self):
        redis, _ = redis_returning(6)

        result = await RateLimiter(redis_client=redis).check_rate_limit("ip", "/api/auth/login")

        assert result.allowed is False
        assert result.remaining == 0

    @pytest.mark.asyncio
    async def test_per_call_config_overrides_default(self):
        redis, pipeline = redis_returning(4)
        config = RateLimitConfig(requests_per_window=3, window_seconds=30, key_prefix="ratelimit:forgot")

        result = await RateLimiter(redis_client=redis).check_rate_limit(
            "10.0.0.1", "/api/auth/forgot-password", config
        )

        assert result.allowed is False
        assert result.limit == 3
        pipeline.incr.assert_called_once_with("ratelimit:forgot:api:auth:forgot-password:10.0.0.1")
        pipeline.set.assert_called_once_with(
            "ratelimit:forgot:api:auth:forgot-password:10.0.0.1", 0, ex=30, nx=True
        )

    @pytest.mark.asyncio
    async def test_window_expiry_is_never_extended(self):
        redis, pipeline = redis_returning(3, ttl=17)

        result = await RateLimiter(redis_client=redis).check_rate_limit("ip", "/api/auth/login")

        # Later hits only INCR; the TTL is set once, when the window opens
        pipeline.expire.assert_not_called()
        assert pipeline.set.call_args.kwargs["nx"] is True
        assert result.reset_after == 17

    @pytest.mark.asyncio
    async def test_missing_ttl_reports_full_window(self):
        redis, _ = redis_returning(1, ttl=-1)

        result = await RateLimiter(redis_client=redis).check_rate_limit("ip", "/api/auth/login")

        assert result.reset_after == 60

    @pytest.mark.asyncio
    async def test_different_ips_use_different_keys(self):
        redis, pipeline = redis_returning(1)
        limiter = RateLimiter(redis_client=redis)

        await limiter.check_rate_limit("192.168.1.1", "/api/auth/login")
        await limiter.check_rate_limit("192.168.1.2", "/api/auth/login")

        keys = [call.args[0] for call in pipeline.incr.call_args_list]
        assert keys[0] != keys[1]

    @pytest.mark.asyncio
    async def test_redis_failure_fails_open(self):
        redis, _ = redis_returning(error=RedisConnectionError("down"))

        result = await RateLimiter(redis_client=redis).check_rate_limit("ip", "/api/auth/login")

        assert result.allowed is True
        assert result.remaining == -1


def _app() -> Starlette:
    async def handler(request):
        return PlainTextResponse("ok")

    app = Starlette(
        routes=[
            Route("/api/auth/login", handler, methods=["POST"]),
            Route("/api/projects", handler),
        ]
    )
    app.add_middleware(RateLimitMiddleware)
    return app


class TestRateLimitMiddleware:
    @pytest.fixture
    def limiter(self, disable_rate_limiting):
        # The autouse fixture already swapped in a mock limiter; reuse it.
        return disable_rate_limiting

    def test_limited_path_gets_headers(self, limiter):
        limiter.check_rate_limit.return_value = RateLimitResult(
            allowed=True, remaining=4, reset_after=60, limit=5
        )

        response = TestClient(_app()).post("/api/auth/login")

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Remaining"] == "4"
        args = limiter.check_rate_limit.call_args.args
        assert args[1] == "/api/auth/login"
        assert args[2] is AUTH_RATE_LIMITS["/auth/login"]

    def test_blocked_request_is_429(self, limiter):
        limiter.check_rate_limit.return_value = RateLimitResult(
            allowed=False, remaining=0, reset_after=42, limit=5
        )

        response = TestClient(_app()).post("/api/auth/login")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert response.json()["error"] == "RateLimitExceeded"

    def test_other_paths_not_limited(self, limiter):
        response = TestClient(_app()).get("/api/projects")

        assert response.status_code == 200
        limiter.check_rate_limit.assert_not_called()

    def test_follows_configured_api_prefix(self, limiter, monkeypatch):
        monkeypatch.setattr(settings, "API_V1_PREFIX", "/v2")

        async def handler(request):
            return PlainTextResponse("ok")

        app = Starlette(routes=[Route("/v2/auth/login", handler, methods=["POST"])])
        app.add_middleware(RateLimitMiddleware)

        response = TestClient(app).post("/v2/auth/login")

        assert response.status_code == 200
        args = limiter.check_rate_limit.call_args.args
        assert args[1] == "/v2/auth/login"
        assert args[2] is AUTH_RATE_LIMITS["/auth/login"]

    def test_disabled_by_setting(self, limiter, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)

        response = TestClient(_app()).post("/api/auth/login")

        assert response.status_code == 200
        limiter.check_rate_limit.assert_not_called()


@pytest.mark.asyncio
async def test_get_rate_limiter_is_a_singleton(monkeypatch):
    fake_client = MagicMock()
    monkeypatch.setattr(rate_limiter_module, "_rate_limiter", None)
    monkeypatch.setattr(rate_limiter_module.aioredis, "from_url", MagicMock(return_value=fake_client))

    first = await real_get_rate_limiter()
    second = await real_get_rate_limiter()

    assert first is second
    assert first._redis is fake_client
