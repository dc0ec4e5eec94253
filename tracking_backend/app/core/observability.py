"""
Observability middleware and logging setup.

Every response carries X-Correlation-ID and X-Process-Time; every request
produces one access log line on the "tracking.requests" logger.
"""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from tracking_backend.app.core.config import settings

logger = logging.getLogger("tracking.requests")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Polled by load balancers; logged at DEBUG only
QUIET_PATHS = {"/health"}


def configure_logging() -> None:
    """Apply the configured log level and format to the root logger."""
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)


def _level_for(status_code: int, path: str) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    if path in QUIET_PATHS:
        return logging.DEBUG
    return logging.INFO


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

        path = request.url.path
        logger.log(
            _level_for(response.status_code, path),
            "%s %s -> %s (%.2f ms) cid=%s",
            request.method,
            path,
            response.status_code,
            duration_ms,
            correlation_id,
            extra={
                "correlation_id": correlation_id,
                "client_ip": request.client.host if request.client else None,
            },
        )

        return response
