"""Health check endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text

from splitlab.api.deps import redis_client
from splitlab.config import get_settings
from splitlab.database import get_db

router = APIRouter()
settings = get_settings()


@router.get("/health")
@router.head("/health")
def health_check():
    """Basic health check."""
    return {"status": "healthy", "service": "splitlab-backend"}


@router.get("/health/detailed")
def detailed_health_check(db: Session = Depends(get_db)):
    """
    Detailed health check including database and Redis connectivity.

    Redis is only checked when rate limiting is enabled.
    """
    checks = {
        "api": "healthy",
        "database": "unknown",
    }

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {str(e)}"

    if settings.rate_limit_enabled:
        try:
            redis_client.ping()
            checks["redis"] = "healthy"
        except Exception as e:
            checks["redis"] = f"unhealthy: {str(e)}"

    overall_status = "healthy" if all(
        v == "healthy" for v in checks.values()
    ) else "degraded"

    return {
        "status": overall_status,
        "checks": checks
    }
