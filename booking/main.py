"""
FastAPI application for the booking scheduler

Thin HTTP layer - scheduling policy lives in booking.scheduling,
reminder dispatch runs in the Celery worker
"""
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from contextlib import asynccontextmanager

from booking.api.errors import BookingRejected, booking_rejected_handler
from booking.api.v1.router import api_v1_router
from booking.config.settings import get_settings
from booking.core.middleware import correlation_id_middleware, request_logging_middleware
from booking.core.monitoring import health_router
from booking.utils.my_logging import setup_logging

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    setup_logging()
    print(f"🚀 {settings.APP_NAME} starting up...")
    print(f"📅 Booking API available at /api/v1/")
    print(f"❤️  Health check at /health")

    if settings.DEBUG:
        print("\n" + "=" * 80)
        print("📋 REGISTERED ROUTES:")
        print("=" * 80)
        routes_list = sorted(
            (method, route.path, route.name)
            for route in app.routes if isinstance(route, APIRoute)
            for method in route.methods
        )
        for method, path, name in routes_list:
            print(f"  {method:8} {path:50} ({name})")
        print(f"\n✅ Total routes registered: {len(routes_list)}")
        print("=" * 80 + "\n")

    yield

    # Shutdown
    print(f"🛑 {settings.APP_NAME} shutting down...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Multi-tenant appointment scheduling with group bookings and reminders",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "PUT"],
        allow_headers=["*"],
    )

    # Add custom middleware (last added runs first)
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(correlation_id_middleware)

    # Typed scheduling rejections -> JSON error bodies
    app.add_exception_handler(BookingRejected, booking_rejected_handler)

    # Include routers
    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "api": "/api/v1/",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "booking.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
