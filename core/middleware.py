"""
Middleware: request timing and access logging.
Wraps the dispatcher as well as the health routes.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.config import get_settings
from utils.logging import get_logger

logger = get_logger(__name__)


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Records request duration, logs every request and warns about slow ones.
    Async-compatible: uses monotonic time, no blocking.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        fields = {
            "path": request.url.path,
            "method": request.method,
            "client": _client_address(request),
            "duration_ms": round(duration_ms, 2),
            "status": response.status_code,
        }
        if duration_ms > get_settings().SLOW_REQUEST_MS:
            logger.warning("slow_request", extra=fields)
        else:
            logger.info("request", extra=fields)
        return response


def _client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"
