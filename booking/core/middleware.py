# booking/core/middleware.py
"""Correlation ids and access logging for every request"""
import uuid
import time
import logging
from starlette.requests import Request

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


async def correlation_id_middleware(request: Request, call_next):
    """Attach a correlation id to the request state and echo it back"""
    correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    start_time = time.time()
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    tenant = request.headers.get("X-Business-Id", "-")

    response = await call_next(request)

    duration_ms = round((time.time() - start_time) * 1000, 2)
    logger.info(
        f"[{correlation_id}] {request.method} {request.url.path} "
        f"tenant={tenant} -> {response.status_code} ({duration_ms}ms)"
    )
    return response
