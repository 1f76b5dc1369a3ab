"""
Custom exception classes and error handling.

This module provides custom exceptions and utilities for consistent
error handling across the gateway.
"""
import logging
from typing import Any, Dict, Optional
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class GatewayException(Exception):
    """Base exception for all gateway-specific errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(GatewayException):
    """Raised when client input is missing or unusable."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class MissingFieldsError(ValidationError):
    """Raised when required request fields are absent or empty."""

    def __init__(self, fields: list[str]):
        message = f"Missing required fields: {', '.join(fields)}"
        super().__init__(message, details={"missing": fields})
        self.fields = fields


class ServiceUnavailableError(GatewayException):
    """Raised when a required remote resource has not been prepared yet."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE, details)


class UpstreamError(GatewayException):
    """
    Raised when a call to a remote collaborator fails.

    The message is the generic text returned to the caller; the original
    exception is only logged.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


# =============================================================================
# Exception Handlers
# =============================================================================

async def gateway_exception_handler(request: Request, exc: GatewayException) -> JSONResponse:
    """Handle GatewayException instances."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "details": exc.details
        }
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 in the gateway error shape."""
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.info(f"Rejected request to {request.url.path}: {errors}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request body",
            "details": {"errors": errors}
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions without leaking their content."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "details": {}
        }
    )


# =============================================================================
# Helper Functions
# =============================================================================

def require_fields(**fields: Any) -> None:
    """
    Raise MissingFieldsError if any of the given values is missing or blank.

    Example:
        >>> require_fields(data=request.data, prompt=request.prompt)
    """
    missing = [name for name, value in fields.items() if value is None or not str(value).strip()]
    if missing:
        raise MissingFieldsError(missing)


def register_exception_handlers(app):
    """
    Register all custom exception handlers with the FastAPI app.

    Call this during app initialization:
        from src.exceptions import register_exception_handlers
        register_exception_handlers(app)
    """
    app.add_exception_handler(GatewayException, gateway_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
