"""
Rate limiting middleware for authentication endpoints.

WHAT: Limits how often a single client may call the unauthenticated auth
endpoints (registration, OTP verification, login, password reset, resend).

WHY: Every one of these endpoints either checks a credential or emails a
one-time code, which makes them targets for:
1. Password and OTP brute force
2. Flooding an inbox with codes
3. Email enumeration

HOW: Uses a Redis fixed window per client IP and endpoint:
1. SET the counter to 0 with the window as TTL, only if it does not exist
2. INCR the counter (INCR keeps the TTL set in step 1)
3. Read the remaining TTL for the reset header
4. If the count exceeds the limit, return 429 Too Many Requests

Design decisions:
- Fail-open: If Redis is unavailable, allow requests (prevents self-DOS)
- Per-endpoint limits: Code-sending endpoints get the tightest limits
- Paths follow API_V1_PREFIX: limits are keyed by the route inside the API
"""

from dataclasses import dataclass
from typing import Optional, Dict
import logging
import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from bugtracker.core.config import settings
from bugtracker.core.exceptions import RateLimitExceeded
from bugtracker.middleware.request_context import get_client_ip


logger = logging.getLogger(__name__)


# ============================================================================
# Configuration
# ============================================================================


@dataclass
class RateLimitConfig:
    """
    Configuration for rate limiting.

    WHAT: Defines rate limit parameters for an endpoint.

    WHY: Endpoints carry different risk:
    - Forgot password / resend: Very strict (3/min), each call sends an email
    - Login / register: Strict (5/min) against brute force and spam
    - Verify OTP: Looser (10/min), users mistype codes

    HOW: One fixed Redis window per (endpoint, client IP).
    """

    requests_per_window: int = 5
    """Maximum number of requests allowed in the window."""

    window_seconds: int = 60
    """Duration of the rate limit window in seconds."""

    key_prefix: str = "ratelimit"
    """Redis key prefix for rate limit counters."""


# Keyed by route path inside the API; the middleware strips API_V1_PREFIX
AUTH_RATE_LIMITS: Dict[str, RateLimitConfig] = {
    "/auth/register/send-otp": RateLimitConfig(
        requests_per_window=5,
        window_seconds=60,
        key_prefix="ratelimit:register-send-otp",
    ),
    "/auth/register/verify-otp": RateLimitConfig(
        requests_per_window=10,
        window_seconds=60,
        key_prefix="ratelimit:register-verify-otp",
    ),
    "/auth/login": RateLimitConfig(
        requests_per_window=5,
        window_seconds=60,
        key_prefix="ratelimit:login",
    ),
    "/auth/forgot-password": RateLimitConfig(
        requests_per_window=3,
        window_seconds=60,
        key_prefix="ratelimit:forgot-password",
    ),
    "/auth/reset-password": RateLimitConfig(
        requests_per_window=5,
        window_seconds=60,
        key_prefix="ratelimit:reset-password",
    ),
    "/auth/resend-otp": RateLimitConfig(
        requests_per_window=3,
        window_seconds=60,
        key_prefix="ratelimit:resend-otp",
    ),
}


def rate_limit_config_for(path: str, prefix: Optional[str] = None) -> Optional[RateLimitConfig]:
    """
    Find the limits for a request path.

    WHAT: Strips the API prefix from ``path`` and looks the rest up in
    AUTH_RATE_LIMITS.

    WHY: The prefix is configurable (API_V1_PREFIX); hard-coded full paths
    would stop matching, and silently stop limiting, when it changes.

    Args:
        path: Request path without trailing slash
        prefix: API prefix (defaults to settings.API_V1_PREFIX)

    Returns:
        RateLimitConfig, or None when the path is not rate limited
    """
    prefix = (settings.API_V1_PREFIX if prefix is None else prefix).rstrip("/")
    if not path.startswith(prefix):
        return None
    return AUTH_RATE_LIMITS.get(path[len(prefix):])


# ============================================================================
# Rate Limit Result
# ============================================================================


@dataclass
class RateLimitResult:
    """
    Result of a rate limit check.

    WHAT: Whether the request is allowed, plus the numbers the client sees
    in the X-RateLimit-* and Retry-After headers.

    HOW: Returned by RateLimiter.check_rate_limit() after the Redis round trip.
    """

    allowed: bool
    """Whether the request is allowed (under limit)."""

    remaining: int
    """Requests remaining in the current window (-1 when unknown)."""

    reset_after: int
    """Seconds until the rate limit window resets."""

    limit: int
    """Maximum requests allowed per window."""


# ============================================================================
# Rate Limiter Service
# ============================================================================


class RateLimiter:
    """
    Redis-based rate limiter.

    WHAT: Implements fixed window rate limiting using Redis SET NX and INCR.

    WHY: Redis-based rate limiting provides:
    - Shared counters across workers and instances
    - Automatic cleanup through key expiry
    - Atomic operations without locks

    HOW: One transactional pipeline per check:
    1. SET key 0 EX window NX (starts a window only when none is open)
    2. INCR key (keeps the TTL, so later hits never extend the window)
    3. TTL key (seconds until the window closes)
    """

    def __init__(
        self,
        redis_client: aioredis.Redis,
        config: Optional[RateLimitConfig] = None,
    ):
        """
        Initialize rate limiter.

        Args:
            redis_client: Async Redis client
            config: Default configuration for endpoints without their own
        """
        self._redis = redis_client
        self._config = config or RateLimitConfig()

    def _build_key(self, identifier: str, endpoint: str, config: RateLimitConfig) -> str:
        """
        Build Redis key for rate limit counter.

        Format: {prefix}:{endpoint_normalized}:{identifier}
        """
        normalized_endpoint = endpoint.strip("/").replace("/", ":")
        return f"{config.key_prefix}:{normalized_endpoint}:{identifier}"

    async def check_rate_limit(
        self,
        identifier: str,
        endpoint: str,
        config: Optional[RateLimitConfig] = None,
    ) -> RateLimitResult:
        """
        Check if request is within rate limit.

        WHAT: Counts this request against the open window for
        ``identifier`` on ``endpoint`` and compares it to the limit.

        WHY: The config is passed per call, so concurrent requests to
        different endpoints never see each other's limits.

        HOW: See the class docstring. A TTL of -1 or -2 (key without expiry,
        or gone between commands) reports the full window.

        Args:
            identifier: Client identifier (IP address)
            endpoint: API endpoint being accessed
            config: Limits to apply (defaults to the limiter's config)

        Returns:
            RateLimitResult with allowed status and metadata
        """
        config = config or self._config
        key = self._build_key(identifier, endpoint, config)

        try:
            pipe = self._redis.pipeline()
            pipe.set(key, 0, ex=config.window_seconds, nx=True)
            pipe.incr(key)
            pipe.ttl(key)

            results = await pipe.execute()
            current_count = results[1]
            ttl = results[2]

        except (RedisError, OSError) as e:
            logger.error(
                f"Rate limit Redis error (allowing request): {e}",
                extra={
                    "identifier": identifier,
                    "endpoint": endpoint,
                },
            )
            return RateLimitResult(
                allowed=True,
                remaining=-1,
                reset_after=config.window_seconds,
                limit=config.requests_per_window,
            )

        return RateLimitResult(
            allowed=current_count <= config.requests_per_window,
            remaining=max(0, config.requests_per_window - current_count),
            reset_after=ttl if ttl and ttl > 0 else config.window_seconds,
            limit=config.requests_per_window,
        )


# ============================================================================
# Global Rate Limiter Instance
# ============================================================================


_rate_limiter: Optional[RateLimiter] = None


async def get_rate_limiter() -> RateLimiter:
    """
    Get or create global rate limiter instance.

    WHAT: Lazy initialization of rate limiter with Redis connection.

    WHY: One client per process reuses the connection pool.

    Returns:
        RateLimiter instance
    """
    global _rate_limiter

    if _rate_limiter is None:
        redis_client = aioredis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
        _rate_limiter = RateLimiter(redis_client=redis_client)

    return _rate_limiter


# ============================================================================
# Rate Limit Middleware
# ============================================================================


def _limit_headers(result: RateLimitResult) -> Dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_after),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware for rate limiting authentication endpoints.

    WHAT: Intercepts requests to the auth endpoints and applies
    AUTH_RATE_LIMITS.

    WHY: Middleware keeps the routers free of limiter calls and covers
    every auth endpoint in one place.

    HOW: Matches the path below API_V1_PREFIX, checks the limiter, and
    either returns 429 with Retry-After or adds the X-RateLimit-* headers
    to the response.

    Usage:
        app.add_middleware(RateLimitMiddleware)
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path.rstrip("/") or "/"
        config = rate_limit_config_for(path) if settings.RATE_LIMIT_ENABLED else None

        if config is None:
            return await call_next(request)

        limiter = await get_rate_limiter()
        result = await limiter.check_rate_limit(get_client_ip(request), path, config)

        if not result.allowed:
            exc = RateLimitExceeded(
                message=f"Rate limit exceeded. Try again in {result.reset_after} seconds.",
                retry_after=result.reset_after,
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_dict(),
                headers={**_limit_headers(result), "Retry-After": str(result.reset_after)},
            )

        response = await call_next(request)
        response.headers.update(_limit_headers(result))
        return response
