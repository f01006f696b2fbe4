"""Structured logging middleware with correlation IDs."""
import structlog
import uuid
import logging
import re
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable, FrozenSet
import time

from splitlab.config import get_settings

# Incoming trace ids are only reused when they look like an id
TRACE_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")


# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=False
)

logger = structlog.get_logger()


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs and log all requests.

    Honors a well-formed incoming X-Trace-ID so embed-script calls can be
    followed from the host page; otherwise a new id is generated.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        trace_id = incoming_trace_id(request) or str(uuid.uuid4())
        request.state.trace_id = trace_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(trace_id=trace_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=client_ip(request, get_settings().trusted_proxies)
        )

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                latency_ms=int((time.time() - start_time) * 1000)
            )
            raise

        logger.info(
            "request_completed",
            status_code=response.status_code,
            latency_ms=int((time.time() - start_time) * 1000)
        )
        response.headers["X-Trace-ID"] = trace_id
        return response


def incoming_trace_id(request: Request):
    """Client-supplied X-Trace-ID, or None if absent or malformed."""
    value = request.headers.get("X-Trace-ID")
    if value and TRACE_ID_PATTERN.fullmatch(value):
        return value
    return None


def client_ip(request: Request, trusted_proxies: FrozenSet[str] = frozenset()) -> str:
    """
    Client address for logging and rate limiting.

    X-Forwarded-For is only read when the socket peer is a trusted proxy;
    any other caller could set it to whatever it likes.
    """
    peer = request.client.host if request.client else "unknown"
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded and peer in trusted_proxies:
        return forwarded.split(",")[0].strip() or peer
    return peer


def get_logger():
    """Get configured structured logger."""
    return logger
