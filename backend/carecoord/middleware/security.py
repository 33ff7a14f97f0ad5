import logging
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("carecoord.requests")

#Adds security headers to every response.
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Basic hardening headers for a JSON API."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"  #Prevents browsers from interpreting files as a different MIME type.
        response.headers["X-Frame-Options"] = "DENY" #Prevents clickjacking by disallowing embedding in iframes.
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains" #Forces HTTPS for a year.
        response.headers["Content-Security-Policy"] = "default-src 'self'"
        response.headers["Cache-Control"] = "no-store"

        return response

#Logs method, path, status and duration of each request.
class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method, request.url.path, response.status_code, duration_ms,
        )
        return response
