# ============================================================================
# FILE: booking/api/dependencies.py
# Request-scoped tenant context and cron authentication
# ============================================================================
from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from booking.config.database import get_db
from booking.config.settings import get_settings
from booking.core.context import RequestContext, build_context
from booking.models.business import Business
from booking.services.settings.settings_service import SettingsService


async def get_current_business(
        x_business_id: Optional[str] = Header(None, alias="X-Business-Id"),
        db: Session = Depends(get_db)
) -> Business:
    """
    Resolve the tenant for this request from the X-Business-Id header.

    Raises:
        HTTPException 400: If the header is missing or malformed
        HTTPException 404: If the business does not exist or is inactive
    """
    if not x_business_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Business context required"
        )

    try:
        business_id = UUID(x_business_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid business ID"
        )

    business = SettingsService.get_business(db, business_id)
    if business is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Business not found"
        )

    return business


async def get_request_context(
        request: Request,
        business: Business = Depends(get_current_business)
) -> RequestContext:
    """
    Dependency that builds the explicit context every scheduling operation takes.

    Usage in routes:
        @router.post("")
        async def create(ctx: RequestContext = Depends(get_request_context)):
            ...
    """
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    return build_context(business, correlation_id=correlation_id)


async def verify_cron_secret(
        authorization: Optional[str] = Header(None)
) -> None:
    """Require `Authorization: Bearer <CRON_SECRET>` when a secret is configured"""
    cron_secret = get_settings().CRON_SECRET
    if cron_secret and authorization != f"Bearer {cron_secret}":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )
