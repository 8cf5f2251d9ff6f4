"""Health checks and monitoring endpoints"""
import logging

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking.config.database import get_db
from booking.config.redis import ping_redis

logger = logging.getLogger(__name__)
health_router = APIRouter()


@health_router.get("")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "booking-scheduler"}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """Database and redis connectivity"""
    checks = {
        "api": "healthy",
        "database": "unknown",
        "redis": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = f"unhealthy: {e}"

    try:
        checks["redis"] = "healthy" if await ping_redis() else "unhealthy: no PONG"
    except (RedisError, OSError) as e:
        logger.error(f"Redis health check failed: {e}")
        checks["redis"] = f"unhealthy: {e}"

    checks["overall"] = "healthy" if all(v == "healthy" for v in checks.values()) else "degraded"
    return checks
