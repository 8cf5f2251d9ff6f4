# booking/api/errors.py
"""Maps typed scheduling failures onto HTTP responses"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from booking.scheduling.errors import SchedulingError

logger = logging.getLogger(__name__)


class BookingRejected(Exception):
    """Raised at the HTTP edge when a service call returned a SchedulingError"""

    def __init__(self, error: SchedulingError):
        super().__init__(error.message)
        self.error = error


def raise_for_result(result):
    """Return the result when it succeeded, otherwise raise BookingRejected"""
    if not result.ok:
        raise BookingRejected(result.error)
    return result


async def booking_rejected_handler(request: Request, exc: BookingRejected) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    logger.info(
        f"Request rejected: {exc.error.kind.value}",
        extra={"correlation_id": correlation_id, "url": str(request.url)},
    )
    return JSONResponse(status_code=exc.error.status_code, content=exc.error.to_dict())
