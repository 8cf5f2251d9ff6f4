"""
API v1 router setup
Organized into: tenant dashboard routes and cron routes
"""
from fastapi import APIRouter

from booking.api.v1 import cron
from booking.api.v1.dashboard import appointments, settings

api_v1_router = APIRouter()

# ============================================================================
# TENANT ROUTES (X-Business-Id header required)
# ============================================================================
api_v1_router.include_router(appointments.router)
api_v1_router.include_router(settings.router)

# ============================================================================
# CRON ROUTES (Bearer CRON_SECRET when configured)
# ============================================================================
api_v1_router.include_router(cron.router)


@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and available endpoints."""
    return {
        "version": "1.0",
        "authentication": {
            "tenant": "X-Business-Id header required",
            "cron": "Bearer CRON_SECRET required when configured",
        }
    }
