"""
Security middleware for FastAPI:
- HTTPS enforcement
- Security headers (CSP, HSTS, X-Frame-Options, etc.)
- Request body size limit
- IP-based security logging and per-IP rate limiting
- Audit logging of every request

Middleware that rejects a request returns a JSON response itself; raising
from inside BaseHTTPMiddleware would bypass the app's exception handlers.
"""

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Headers added:
    - Strict-Transport-Security (HSTS)
    - X-Frame-Options
    - X-Content-Type-Options
    - Content-Security-Policy
    - Referrer-Policy
    - Permissions-Policy
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "img-src 'self' data:; "
            "frame-ancestors 'none'; "
            "base-uri 'self';"
        )
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"

        return response


class HTTPSEnforcementMiddleware(BaseHTTPMiddleware):
    """Enforce HTTPS in production"""

    def __init__(self, app, enabled: bool = False):
        super().__init__(app)
        self.enabled = enabled

    async def dispatch(self, request: Request, call_next):
        if self.enabled:
            scheme = request.url.scheme
            x_forwarded_proto = request.headers.get("x-forwarded-proto")
            if scheme != "https" and x_forwarded_proto != "https":
                return JSONResponse(status_code=403, content={"message": "HTTPS required"})

        return await call_next(request)


class BodySizeLimitMiddleware:
    """
    Reject request bodies over the limit with 413.

    A declared Content-Length is checked before the app runs. Bodies sent
    without one (chunked) are counted as they stream in, and reading past
    the limit raises a 413 HTTPException inside the request. Written as
    plain ASGI so it can wrap `receive`.
    """

    def __init__(self, app, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        length = request.headers.get("content-length")
        if length is not None:
            try:
                too_large = int(length) > self.max_bytes
            except ValueError:
                response = JSONResponse(status_code=400, content={"message": "Invalid Content-Length"})
                await response(scope, receive, send)
                return
            if too_large:
                self._log_rejected(request, length)
                response = JSONResponse(status_code=413, content={"message": "Payload too large"})
                await response(scope, receive, send)
                return

        received = 0

        async def counting_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    self._log_rejected(request, received)
                    raise HTTPException(status_code=413, detail="Payload too large")
            return message

        await self.app(scope, counting_receive, send)

    @staticmethod
    def _log_rejected(request: Request, size):
        logger.warning(
            f"Payload too large: {size} bytes on {request.method} {request.url.path} "
            f"from {_client_ip(request)}"
        )


class SecurityLoggingMiddleware(BaseHTTPMiddleware):
    """Log security-relevant events"""

    async def dispatch(self, request: Request, call_next):
        client_ip = _client_ip(request)
        user_agent = request.headers.get("user-agent", "unknown")
        path = request.url.path

        if "/auth/" in path:
            logger.info(f"Auth request: {request.method} {path} from {client_ip} - {user_agent}")

        # user administration is admin-only
        if path.startswith("/api/users") and not path.startswith("/api/users/profile"):
            logger.warning(f"Admin endpoint access: {request.method} {path} from {client_ip}")

        response = await call_next(request)

        if "/auth/" in path and response.status_code == 401:
            logger.warning(f"Failed authentication: {request.method} {path} from {client_ip}")

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP fixed-window rate limiting.
    Counters live in the RateLimitStore of the app's service context.
    """

    async def dispatch(self, request: Request, call_next):
        store = request.app.state.context.rate_limits
        client_ip = _client_ip(request)

        allowed, remaining, reset_at = store.hit(client_ip)
        if not allowed:
            logger.warning(f"Rate limit exceeded for IP {client_ip}")
            return JSONResponse(
                status_code=429,
                content={"message": "Too many requests from this IP, please try again later."},
                headers={"Retry-After": str(max(int((reset_at - datetime.utcnow()).total_seconds()), 1))},
            )

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(store.limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(int(reset_at.timestamp()))

        return response


class AuditLoggingMiddleware(BaseHTTPMiddleware):
    """
    Audit logging for every request.
    The user id is whatever the auth dependency resolved for the request.
    """

    async def dispatch(self, request: Request, call_next):
        client_ip = _client_ip(request)
        started = datetime.utcnow()

        logger.info(
            f"Request: {request.method} {request.url.path} | "
            f"IP: {client_ip} | Time: {started.isoformat()}"
        )

        response = await call_next(request)

        user_id = getattr(request.state, "user_id", None)
        elapsed_ms = int((datetime.utcnow() - started).total_seconds() * 1000)
        logger.info(
            f"Response: {response.status_code} for {request.method} {request.url.path} | "
            f"User: {user_id} | {elapsed_ms}ms"
        )

        return response
