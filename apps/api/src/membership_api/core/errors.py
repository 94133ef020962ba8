"""
Service Errors

Base class for domain errors raised by service layers, and the helpers routers
use to turn them into HTTP responses.
"""

import logging
from typing import Any, NoReturn

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """
    Base exception for service errors.

    Attributes:
        message: Human readable message
        error_code: Stable upper-case identifier clients can switch on
        status_code: HTTP status the router should respond with
        details: Optional structured data (e.g. missing field ids)
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def raise_http_error(e: ServiceError) -> NoReturn:
    """Convert a service error to an HTTPException."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
            **e.details,
        },
    ) from e


def raise_internal_error(e: Exception, context: str) -> NoReturn:
    """Log an unexpected error and raise a generic 500."""
    logger.exception(f"Unexpected error {context}: {e}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    ) from e
