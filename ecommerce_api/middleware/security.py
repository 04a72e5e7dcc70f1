"""Security headers and request logging middleware"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import logging
import time

logger = logging.getLogger(__name__)

DOCS_PREFIXES = ("/api/docs", "/api/redoc", "/openapi.json")

class SecurityMiddleware(BaseHTTPMiddleware):
    """Adds security headers and logs request timing"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-Process-Time"] = f"{elapsed_ms:.1f}ms"

        # Swagger UI needs inline scripts
        if not request.url.path.startswith(DOCS_PREFIXES):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        logger.debug(
            "%s %s -> %s in %.1fms",
            request.method, request.url.path, response.status_code, elapsed_ms
        )
        return response
