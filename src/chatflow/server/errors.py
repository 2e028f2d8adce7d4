"""Server error handling - maps engine errors to responses and sanitizes the rest.

Client errors (unknown execution, inactive execution, conflicts, invalid
graphs or payloads) are reported with their message. Anything else gets a
generic message and an ``ERR-xxxxxxxx`` reference; full details go to the
server log only.
"""

import logging
import uuid

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from chatflow.core.errors import ChatflowError
from chatflow.runtime.service import error_category

logger = logging.getLogger(__name__)

# HTTP status per error category of the trigger envelope
CATEGORY_STATUS = {
    "not_found": 404,
    "not_active": 400,
    "conflict": 409,
    "invalid_graph": 422,
    "invalid_request": 422,
    "internal": 500,
}

# Error messages safe to expose to clients for internal failures
SAFE_ERROR_MESSAGES = {
    "ConfigError": "Configuration error. Please contact support.",
    "GatewayError": "External service error. Please try again.",
    "ExpressionError": "Flow execution error. Please try again.",
}

DEFAULT_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def create_error_reference() -> str:
    """Generate unique error reference for client/server correlation."""
    return f"ERR-{uuid.uuid4().hex[:8].upper()}"


def get_safe_error_message(exception: Exception) -> str:
    """Get client-safe error message for exception type."""
    return SAFE_ERROR_MESSAGES.get(type(exception).__name__, DEFAULT_ERROR_MESSAGE)


def status_for_category(category: str) -> int:
    return CATEGORY_STATUS.get(category, 500)


def log_error_with_context(
    error_ref: str,
    exception: Exception,
    endpoint: str | None = None,
) -> None:
    """Log full error details server-side for debugging."""
    logger.error(
        f"[{error_ref}] Error in {endpoint or 'unknown'}: {type(exception).__name__}: {exception}",
        exc_info=exception,
        extra={
            "error_reference": error_ref,
            "endpoint": endpoint,
            "exception_type": type(exception).__name__,
        },
    )


def internal_error_response(exception: Exception, endpoint: str | None = None) -> JSONResponse:
    error_ref = create_error_reference()
    log_error_with_context(error_ref, exception, endpoint)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": get_safe_error_message(exception),
            "category": "internal",
            "reference": error_ref,
        },
    )


async def chatflow_exception_handler(request: Request, exc: ChatflowError) -> JSONResponse:
    """Handler for ChatflowError raised by endpoints."""
    category = error_category(exc)
    if category == "internal":
        return internal_error_response(exc, request.url.path)

    logger.info(f"Rejected {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_for_category(category),
        content={"success": False, "error": str(exc), "category": category},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies use the error envelope too."""
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Invalid request data.",
            "category": "invalid_request",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for uncaught exceptions."""
    return internal_error_response(exc, request.url.path)
