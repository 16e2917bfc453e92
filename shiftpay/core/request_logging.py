# shiftpay/core/request_logging.py
"""
Request logging middleware with request ids and timing.
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shiftpay.core.logging_config import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every HTTP request with status code and duration.

    Reuses an incoming X-Request-ID or generates one, and echoes it back.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception:
            logger.error(
                "%s %s - unhandled error",
                request.method,
                request.url.path,
                extra={"extra_fields": {"request_id": request_id}},
                exc_info=True,
            )
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            log_data = {
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
            }
            message = f"{request.method} {request.url.path} - {status_code} ({duration_ms:.2f}ms)"

            if status_code >= 500:
                logger.error(message, extra={"extra_fields": log_data})
            elif status_code >= 400:
                logger.warning(message, extra={"extra_fields": log_data})
            else:
                logger.info(message, extra={"extra_fields": log_data})
