"""
Request Logging Middleware

Logs one access line per HTTP request:
- Method and route template (e.g. /api/urls/{short_code})
- The short code the request addressed, when the route takes one
- Response status code and processing time
- Client IP address

Logging the route template plus the code keeps lines for the same endpoint
grouped together while still showing which link was hit. Server errors are
logged at WARNING so they stand out from redirect traffic.
"""

import logging
import time
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from shortlinks.core.setting import settings

logger = logging.getLogger("shortlinks")
access_logger = logging.getLogger("shortlinks.access")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None) -> None:
    """
    Apply the configured log level to the service loggers.

    Only installs a handler when the root logger has none, so running under
    uvicorn or pytest keeps their logging setup.
    """
    level = (level or settings.LOG_LEVEL).upper()
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)


def match_route(request: Request) -> tuple[str, Optional[str]]:
    """
    Find the route template and short code for a request.

    Returns:
        (route path or raw path, short_code path parameter or None)
    """
    for route in request.app.router.routes:
        match, child_scope = route.matches(request.scope)
        if match == Match.FULL:
            short_code = child_scope.get("path_params", {}).get("short_code")
            return getattr(route, "path", request.url.path), short_code
    return request.url.path, None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Writes an access log line for every request, tagged with its short code."""

    async def dispatch(self, request: Request, call_next):
        client_ip = self._get_client_ip(request)
        route_path, short_code = match_route(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        code_part = f" code={short_code}" if short_code else ""
        access_logger.log(
            level,
            f"{request.method} {route_path}{code_part} "
            f"{response.status_code} {elapsed_ms:.2f}ms IP:{client_ip}"
        )

        response.headers["X-Process-Time"] = f"{elapsed_ms / 1000:.6f}"
        return response

    def _get_client_ip(self, request: Request) -> str:
        # First hop of X-Forwarded-For when behind a proxy
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        return request.client.host if request.client else "unknown"


def add_logging_middleware(app):
    app.add_middleware(RequestLoggingMiddleware)
