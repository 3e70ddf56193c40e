"""HTTP middleware for request/response logging."""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

# Slow request threshold in milliseconds
SLOW_REQUEST_THRESHOLD_MS = 1000

RESPONSE_TIME_HEADER = "X-Response-Time-Ms"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status and duration.

    Log levels:
    - DEBUG: Request start
    - INFO: Successful responses
    - WARNING: 4xx errors, slow requests (>1s)
    - ERROR: 5xx errors and unhandled exceptions
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()
        logger.debug("%s %s", request.method, request.url.path)

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "%s %s -> unhandled error (%.1fms)", request.method, request.url.path, duration_ms
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers[RESPONSE_TIME_HEADER] = f"{duration_ms:.1f}"
        self._log_response(request, response, duration_ms)
        return response

    def _log_response(
        self, request: Request, response: Response, duration_ms: float
    ) -> None:
        method = request.method
        path = request.url.path
        status = response.status_code

        if status >= 500:
            logger.error("%s %s -> %d (%.1fms)", method, path, status, duration_ms)
        elif status >= 400:
            logger.warning("%s %s -> %d (%.1fms)", method, path, status, duration_ms)
        elif duration_ms > SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                "%s %s -> %d (%.1fms) SLOW", method, path, status, duration_ms
            )
        else:
            logger.info("%s %s -> %d (%.1fms)", method, path, status, duration_ms)
