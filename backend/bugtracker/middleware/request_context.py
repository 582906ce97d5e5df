"""
Request context middleware.

WHAT: Middleware that extracts request context (request id, IP address,
user agent) for logging and error correlation.

WHY: When a user reports a failed request, the X-Request-ID echoed on every
response ties it to the server log lines for that request.

HOW: Captures the request id, client IP and user agent of every request and makes
them available to handlers (``request.state.context``) and to any code
running inside the request (``get_request_context()``).
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass
class RequestContext:
    """
    Container for request-scoped context data.

    WHY: A dataclass gives one typed object to pass around instead of
    loose header lookups.

    Fields:
    - request_id: Unique identifier for the request (for log correlation)
    - ip_address: Client's IP (considering proxies)
    - user_agent: Client's browser/application identifier
    - path: Request path
    - method: HTTP method
    """

    request_id: str
    ip_address: str
    user_agent: Optional[str]
    path: str
    method: str


_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context", default=None
)


def get_request_context() -> Optional[RequestContext]:
    """
    Get the current request context.

    WHY: ContextVar gives each async request its own context, so code
    without access to the Request (services, log filters) can still read it.

    Returns:
        RequestContext if within a request, None otherwise
    """
    return _request_context.get()


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from a request.

    WHY: Behind a reverse proxy the socket peer is the proxy, and rate
    limiting by it would throttle every client at once.

    HOW: Checks X-Real-IP, then the first entry of X-Forwarded-For, then the
    socket peer.

    Args:
        request: The incoming request

    Returns:
        Client IP address as string

    Security Note:
        These headers can be spoofed by clients if not behind a trusted proxy.
    """
    x_real_ip = request.headers.get("X-Real-IP")
    if x_real_ip:
        return x_real_ip.strip()

    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        # "client, proxy1, proxy2"
        return x_forwarded_for.split(",")[0].strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def get_user_agent(request: Request) -> Optional[str]:
    return request.headers.get("User-Agent")


def _request_id_from(request: Request) -> str:
    """Reuse a caller-supplied request id when it is sane, else mint one."""
    supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if supplied and len(supplied) <= 128 and supplied.isprintable():
        return supplied
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that captures and stores request context.

    HOW: Sets request.state.context and the ContextVar before the handler
    runs, echoes X-Request-ID on the response, and resets the ContextVar
    afterwards.

    Example:
        @router.get("/example")
        async def example(request: Request):
            ctx = request.state.context
            print(f"Request {ctx.request_id} from {ctx.ip_address}")
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _request_id_from(request)

        context = RequestContext(
            request_id=request_id,
            ip_address=get_client_ip(request),
            user_agent=get_user_agent(request),
            path=request.url.path,
            method=request.method,
        )

        request.state.context = context
        token = _request_context.set(context)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            _request_context.reset(token)
