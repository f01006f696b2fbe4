"""Shared route dependencies: services, rate limiting and error mapping."""
from typing import FrozenSet, Optional

import redis
from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from splitlab.config import get_settings
from splitlab.database import get_db
from splitlab.middleware.logging import client_ip, get_logger
from splitlab.services.analytics import AnalyticsService
from splitlab.services.errors import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    SplitLabError,
    ValidationError,
)
from splitlab.services.experiments import ExperimentService
from splitlab.services.rate_limiter import RateLimiter
from splitlab.services.repository import ExperimentRepository
from splitlab.services.views import ViewRecorder

settings = get_settings()
logger = get_logger()

redis_client = redis.from_url(settings.redis_url)
rate_limiter = RateLimiter(
    redis_client,
    limit=settings.rate_limit_requests,
    window=settings.rate_limit_window
)

STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    PersistenceError: 500,
}


def to_http_exception(error: SplitLabError) -> HTTPException:
    """Translate a service error into the HTTP response for it."""
    status_code = STATUS_CODES.get(type(error), 500)
    if status_code == 500:
        logger.error("service_error", error=error.message, error_kind=error.kind)
        return HTTPException(status_code=500, detail="Internal server error")
    return HTTPException(status_code=status_code, detail=error.message)


def get_repository(db: Session = Depends(get_db)) -> ExperimentRepository:
    return ExperimentRepository(db)


def get_experiment_service(
    repository: ExperimentRepository = Depends(get_repository)
) -> ExperimentService:
    return ExperimentService(repository)


def get_view_recorder(
    repository: ExperimentRepository = Depends(get_repository)
) -> ViewRecorder:
    return ViewRecorder(repository)


def get_analytics_service(
    repository: ExperimentRepository = Depends(get_repository)
) -> AnalyticsService:
    return AnalyticsService(repository)


class RateLimitGuard:
    """
    Per-client-IP rate limit for one endpoint scope.

    Usage:
        @router.get("/content/{experiment_id}", dependencies=[Depends(RateLimitGuard("content"))])

    Fails open if Redis is unreachable; the endpoints it guards are public
    display paths where dropping traffic is worse than over-admitting it.
    """

    def __init__(
        self,
        scope: str,
        limiter: Optional[RateLimiter] = None,
        enabled: Optional[bool] = None,
        trusted_proxies: Optional[FrozenSet[str]] = None
    ):
        self.scope = scope
        self.limiter = limiter
        self.enabled = enabled
        self.trusted_proxies = trusted_proxies

    def __call__(self, request: Request, response: Response) -> None:
        enabled = settings.rate_limit_enabled if self.enabled is None else self.enabled
        if not enabled:
            return

        limiter = self.limiter or rate_limiter
        trusted = settings.trusted_proxies if self.trusted_proxies is None else self.trusted_proxies
        client = client_ip(request, trusted)
        try:
            allowed, remaining = limiter.hit(self.scope, client)
        except redis.RedisError as e:
            logger.warning("rate_limit_unavailable", scope=self.scope, error=str(e))
            return

        if not allowed:
            logger.warning("rate_limit_exceeded", scope=self.scope, client_ip=client)
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Limit: {limiter.limit} requests per {limiter.window}s",
                headers={"X-RateLimit-Limit": str(limiter.limit), "X-RateLimit-Remaining": "0"}
            )

        response.headers["X-RateLimit-Limit"] = str(limiter.limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
