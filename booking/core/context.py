# booking/core/context.py
"""Request-scoped context passed explicitly into every scheduling operation"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

logger = logging.getLogger(__name__)


def _zone(timezone_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone_name or "UTC")
    except ZoneInfoNotFoundError:
        logger.warning(f"Unknown timezone {timezone_name!r}, falling back to UTC")
        return ZoneInfo("UTC")


def to_wall_clock(value: Optional[datetime], timezone_name: str) -> Optional[datetime]:
    """
    Express a datetime as naive tenant-local time.

    Offset-aware values are converted into the tenant's timezone first;
    naive values are already wall-clock time and pass through unchanged.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(_zone(timezone_name)).replace(tzinfo=None)


@dataclass(frozen=True)
class RequestContext:
    business_id: UUID
    now: datetime  # tenant-local, naive
    timezone: str = "UTC"
    correlation_id: str = "unknown"

    def wall_clock(self, value: Optional[datetime]) -> Optional[datetime]:
        return to_wall_clock(value, self.timezone)


def tenant_now(timezone_name: str) -> datetime:
    """Current wall-clock time in the tenant's timezone, without tzinfo"""
    return datetime.now(_zone(timezone_name)).replace(tzinfo=None)


def build_context(business, correlation_id: str = "unknown") -> RequestContext:
    return RequestContext(
        business_id=business.id,
        now=tenant_now(business.timezone),
        timezone=business.timezone or "UTC",
        correlation_id=correlation_id,
    )
