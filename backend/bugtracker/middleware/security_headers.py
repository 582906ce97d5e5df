"""
Security headers middleware.

WHAT: Adds the standard browser hardening headers to every response and
disables caching of API responses.

WHY: OWASP A05 (Security Misconfiguration). API responses carry tokens and
account data and must never be framed, sniffed or cached by a shared proxy.

HOW: One pass over SECURITY_HEADERS after the handler runs; the docs pages
skip the CSP so their CDN assets load.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable, Dict

# JSON API only: nothing is ever rendered or framed
SECURITY_HEADERS: Dict[str, str] = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'; base-uri 'none'",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=(), payment=(), usb=()",
}

# Interactive docs load their own scripts and styles from a CDN
DOCS_PATHS = ("/api/docs", "/api/redoc")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds security headers to all responses.

    Usage:
        app.add_middleware(SecurityHeadersMiddleware)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        path = request.url.path
        for name, value in SECURITY_HEADERS.items():
            if name == "Content-Security-Policy" and path.startswith(DOCS_PATHS):
                continue
            response.headers[name] = value

        if path.startswith("/api"):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
            response.headers["Pragma"] = "no-cache"

        return response
