"""HTTP middleware and app-wide handlers."""

from fastapi import FastAPI

from pledgetrack.config import Settings
from pledgetrack.middleware.cors import setup_cors
from pledgetrack.middleware.error_handler import setup_error_handlers
from pledgetrack.middleware.logging import setup_logging
from pledgetrack.middleware.rate_limit import RateLimitMiddleware
from pledgetrack.middleware.request_id import RequestIdMiddleware

__all__ = ["setup_middleware"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install logging, error handlers and the middleware stack.

    Starlette wraps in reverse order of ``add_middleware``: CORS ends up
    outermost so rate-limited and errored responses still carry its headers,
    and the request id is bound before the rate limiter logs anything.
    """
    setup_logging(settings)
    setup_error_handlers(app)

    if settings.rate_limit_requests > 0:
        app.add_middleware(
            RateLimitMiddleware,
            requests_per_window=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
