"""Domain error taxonomy.

Every error carries the HTTP status it maps to; the global handler in
``pledgetrack.middleware.error_handler`` renders them as ``{"detail": ...}``.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable
from typing import TypeVar

import structlog
from sqlalchemy.exc import DBAPIError
from starlette.responses import Response

logger = structlog.get_logger()

T = TypeVar("T")

# SQLite: "no such table"/"no such column"; PostgreSQL: UndefinedTable/UndefinedColumn
_SCHEMA_MISSING_RE = re.compile(
    r"no such table|no such column|undefined ?table|undefined ?column|relation .* does not exist",
    re.IGNORECASE,
)


class AppError(Exception):
    """Base class for errors raised by pledgetrack services."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError, ValueError):
    """Bad input shape or range, or an operation not allowed in the current state."""

    status_code = 400


class NotFoundError(AppError, LookupError):
    """Target participant, campaign or catalog entry does not exist."""

    status_code = 404


class SchemaUnavailableError(AppError):
    """The backing store has not been migrated yet."""

    status_code = 503
    reason = "db-not-initialized"


def is_schema_missing(exc: BaseException) -> bool:
    """Return True when a database error means the schema is not initialized."""
    if not isinstance(exc, DBAPIError):
        return False
    return bool(_SCHEMA_MISSING_RE.search(str(exc.orig) if exc.orig is not None else str(exc)))


async def read_or_empty(response: Response, loader: Awaitable[T], empty: T) -> T:
    """Await a read query; on an unmigrated schema return ``empty`` and tag the response.

    Read endpoints show "nothing yet" instead of an error page while the
    database is being initialized.
    """
    try:
        return await loader
    except DBAPIError as exc:
        if not is_schema_missing(exc):
            raise
        logger.warning("schema_unavailable", reason=SchemaUnavailableError.reason)
        response.headers["X-Empty-Reason"] = SchemaUnavailableError.reason
        return empty
