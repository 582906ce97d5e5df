"""
Middleware package.

WHY: Cross-cutting request handling lives here rather than in the
routers: security headers, request context and rate limiting of the auth
endpoints.
"""

from bugtracker.middleware.security_headers import SecurityHeadersMiddleware
from bugtracker.middleware.request_context import (
    RequestContextMiddleware,
    get_request_context,
    get_client_ip,
    get_user_agent,
    RequestContext,
)
from bugtracker.middleware.rate_limiter import (
    RateLimitMiddleware,
    RateLimiter,
    RateLimitConfig,
    RateLimitResult,
    get_rate_limiter,
    AUTH_RATE_LIMITS,
)

__all__ = [
    # Security
    "SecurityHeadersMiddleware",
    # Request context
    "RequestContextMiddleware",
    "get_request_context",
    "get_client_ip",
    "get_user_agent",
    "RequestContext",
    # Rate limiting
    "RateLimitMiddleware",
    "RateLimiter",
    "RateLimitConfig",
    "RateLimitResult",
    "get_rate_limiter",
    "AUTH_RATE_LIMITS",
]
