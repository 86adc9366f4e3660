"""
Error handling utilities for consistent error responses across routers.

Routers catch domain exceptions (see error_types.py) and data-layer errors at
the handler boundary and convert them with the helpers below, so every failure
leaves the API as one of 400/401/403/404/500 with a logged context line.
"""

import logging
from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .error_types import (
    InvalidStatusTransition,
    LaunchDateInPast,
    MissionAccessDenied,
    MissionNotFound,
    OrbitFundError,
    TokenErrorReason,
)

logger = logging.getLogger(__name__)

TOKEN_ERROR_DETAILS = {
    TokenErrorReason.MISSING: "Unauthorized: No token provided.",
    TokenErrorReason.EXPIRED: "Unauthorized: Token expired.",
    TokenErrorReason.INVALID: "Unauthorized: Invalid token.",
}


class ErrorContext:
    """Context information for error handling."""
    def __init__(self, operation: str, resource: Optional[str] = None, user_id: Optional[int] = None):
        self.operation = operation
        self.resource = resource
        self.user_id = user_id

    def __str__(self) -> str:
        parts = [self.operation]
        if self.resource:
            parts.append(f"resource={self.resource}")
        if self.user_id is not None:
            parts.append(f"user_id={self.user_id}")
        return ", ".join(parts)


def handle_data_error(
    error: Exception,
    context: ErrorContext,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    detail: Optional[str] = None,
) -> HTTPException:
    """
    Handle data-related errors with consistent logging and response.

    The raw driver message goes to the log only; the client gets a generic detail.

    Args:
        error: The exception that occurred
        context: Error context information
        status_code: HTTP status code (default: 500)
        detail: Custom error message (default: generic message based on context)

    Returns:
        HTTPException with appropriate status code and detail
    """
    if detail is None:
        detail = f"Error {context.operation}"
        if context.resource:
            detail += f" for {context.resource}"

    logger.error(f"{context}: {error}", exc_info=True)

    return HTTPException(status_code=status_code, detail=detail)


def handle_not_found(
    resource_type: str,
    resource_id: str,
    context: Optional[ErrorContext] = None,
    detail: Optional[str] = None,
) -> HTTPException:
    """
    Handle 404 Not Found errors consistently.

    Args:
        resource_type: Type of resource (e.g., "mission", "user")
        resource_id: Identifier of the resource
        context: Optional error context
        detail: Optional message overriding the default one

    Returns:
        HTTPException with 404 status
    """
    if detail is None:
        detail = f"{resource_type.capitalize()} '{resource_id}' not found"

    if context:
        logger.warning(f"{context}: {detail}")
    else:
        logger.warning(detail)

    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def handle_validation_error(
    message: str,
    field: Optional[str] = None,
    context: Optional[ErrorContext] = None
) -> HTTPException:
    """
    Handle 400 Bad Request validation errors.

    Args:
        message: Validation error message
        field: Optional field name that failed validation
        context: Optional error context

    Returns:
        HTTPException with 400 status
    """
    detail = message
    if field:
        detail = f"Validation error for '{field}': {message}"

    if context:
        logger.warning(f"{context}: {detail}")
    else:
        logger.warning(f"Validation error: {detail}")

    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def handle_authentication_error(reason: TokenErrorReason) -> HTTPException:
    """401 with a reason-specific detail (missing / expired / invalid token)."""
    detail = TOKEN_ERROR_DETAILS[reason]
    logger.warning(f"Authentication failed ({reason.value}): {detail}")
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def handle_authorization_error(
    message: str = "Not authorized to perform this action",
    context: Optional[ErrorContext] = None
) -> HTTPException:
    """
    Handle 403 Forbidden authorization errors.

    Args:
        message: Authorization error message
        context: Optional error context

    Returns:
        HTTPException with 403 status
    """
    if context:
        logger.warning(f"{context}: {message}")
    else:
        logger.warning(f"Authorization error: {message}")

    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


def handle_processing_error(
    operation: str,
    error: Exception,
    resource: Optional[str] = None,
    user_id: Optional[int] = None
) -> HTTPException:
    """
    Handle 500 Internal Server Error for processing failures.

    This is a convenience wrapper around handle_data_error for processing errors.
    """
    context = ErrorContext(operation=operation, resource=resource, user_id=user_id)
    return handle_data_error(
        error=error,
        context=context,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Error {operation}" + (f" for {resource}" if resource else "")
    )


def handle_domain_error(error: OrbitFundError, context: ErrorContext) -> HTTPException:
    """Map a domain exception raised by a service to its HTTP counterpart."""
    if isinstance(error, MissionAccessDenied):
        return handle_authorization_error("Permission denied or mission not found.", context)
    if isinstance(error, MissionNotFound):
        return handle_not_found("mission", str(error.mission_id), context)
    if isinstance(error, InvalidStatusTransition):
        return handle_not_found(
            "submission",
            str(error.mission_id),
            context,
            detail=f"Submission with ID {error.mission_id} not found or not in 'Pending' status.",
        )
    if isinstance(error, LaunchDateInPast):
        return handle_validation_error("Action blocked: Launch date cannot be in the past.", context=context)
    return handle_data_error(error, context)


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or missing input is a 400, like every other validation failure."""
    errors = jsonable_encoder(exc.errors())
    logger.warning(f"Request validation failed for {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request.", "errors": errors},
    )
