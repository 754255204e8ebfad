"""
Shared exception classes and error handling utilities for the EMR Service API.

This module provides:
- Custom exception hierarchy for query, identifier and gateway errors
- Consistent error response formatting
- Exception handlers for FastAPI integration

Usage:
    from emr_svc.core.exceptions import QueryNotFoundError, AlreadyProvisionedError

    # In service layer - raise domain exceptions
    raise QueryNotFoundError(query_id="kenyaemr.search.visits")

    # In FastAPI - register handlers via setup_exception_handlers(app)
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================

class EmrServiceError(Exception):
    """
    Base exception for all EMR Service domain errors.

    Provides consistent error structure with status code and detail message.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any
    ):
        """
        Initialize the exception.

        Args:
            detail: Human-readable error message. Uses class default if not provided.
            status_code: HTTP status code. Uses class default if not provided.
            **kwargs: Additional context to include in error response.
        """
        self.detail = detail or self.__class__.detail
        self.status_code = status_code or self.__class__.status_code
        self.context = kwargs
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        result: Dict[str, Any] = {"detail": self.detail}
        if self.context:
            result["context"] = self.context
        return result


# =============================================================================
# LOOKUP EXCEPTIONS
# =============================================================================

class NotFoundError(EmrServiceError):
    """Raised when a named resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"


class QueryNotFoundError(NotFoundError):
    """Raised when no query template is registered under an id."""

    detail = "Query not found"

    def __init__(self, query_id: Optional[str] = None, **kwargs: Any):
        detail = f"No such query: {query_id}" if query_id else self.detail
        super().__init__(detail=detail, query_id=query_id, **kwargs)


class IdentifierTypeNotFoundError(NotFoundError):
    """Raised when an identifier type is unknown."""

    detail = "Identifier type not found"

    def __init__(self, identifier_type: Optional[str] = None, **kwargs: Any):
        detail = f"Identifier type '{identifier_type}' not found" if identifier_type else self.detail
        super().__init__(detail=detail, identifier_type=identifier_type, **kwargs)


class IdentifierSourceNotFoundError(NotFoundError):
    """Raised when an identifier type has no identifier source yet."""

    detail = "Identifier source not found"

    def __init__(self, identifier_type: Optional[str] = None, **kwargs: Any):
        detail = (
            f"No identifier source is configured for '{identifier_type}'"
            if identifier_type else self.detail
        )
        super().__init__(detail=detail, identifier_type=identifier_type, **kwargs)


class LocationNotFoundError(NotFoundError):
    """Raised when a location is not found."""

    detail = "Location not found"


# =============================================================================
# QUERY ENGINE EXCEPTIONS
# =============================================================================

class TemplateError(EmrServiceError):
    """Raised when a query template cannot be parsed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Malformed query template"

    def __init__(
        self,
        reason: Optional[str] = None,
        query_id: Optional[str] = None,
        position: Optional[int] = None,
        **kwargs: Any
    ):
        detail = f"Malformed query template: {reason}" if reason else self.detail
        if query_id:
            detail = f"{detail} (query '{query_id}')"
        super().__init__(detail=detail, query_id=query_id, position=position, **kwargs)


class BindingError(EmrServiceError):
    """Raised when a parameter value cannot be bound to a statement."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid query parameter"

    def __init__(self, parameter: Optional[str] = None, reason: Optional[str] = None, **kwargs: Any):
        detail = f"Cannot bind parameter '{parameter}'" if parameter else self.detail
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail=detail, parameter=parameter, **kwargs)


class QueryExecutionError(EmrServiceError):
    """
    Raised when the database fails while running a query.

    The original exception is kept on `cause` and chained as `__cause__`.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Query execution failed"

    def __init__(self, query_id: Optional[str] = None, cause: Optional[BaseException] = None, **kwargs: Any):
        detail = f"Query '{query_id}' failed" if query_id else self.detail
        if cause is not None:
            detail = f"{detail}: {type(cause).__name__}: {cause}"
        self.cause = cause
        super().__init__(detail=detail, query_id=query_id, **kwargs)


# =============================================================================
# IDENTIFIER EXCEPTIONS
# =============================================================================

class AlreadyProvisionedError(EmrServiceError):
    """Raised when an identifier type already has an identifier source."""

    status_code = status.HTTP_409_CONFLICT
    detail = "Identifier source already exists"

    def __init__(self, identifier_type: Optional[str] = None, **kwargs: Any):
        detail = (
            f"Identifier source already exists for {identifier_type}"
            if identifier_type else self.detail
        )
        super().__init__(detail=detail, identifier_type=identifier_type, **kwargs)


class ConfigError(EmrServiceError):
    """Raised for invalid configuration (base characters, start value, validator, gateway)."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Invalid configuration"


class CapacityError(EmrServiceError):
    """Raised when an identifier source has used up its sequence space."""

    status_code = status.HTTP_409_CONFLICT
    detail = "Identifier sequence exhausted"

    def __init__(self, source_name: Optional[str] = None, **kwargs: Any):
        detail = (
            f"Identifier source '{source_name}' cannot generate any more identifiers"
            if source_name else self.detail
        )
        super().__init__(detail=detail, source_name=source_name, **kwargs)


class InvalidIdentifierError(EmrServiceError):
    """Raised when an identifier contains characters outside its base character set."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid identifier"

    def __init__(self, identifier: Optional[str] = None, reason: Optional[str] = None, **kwargs: Any):
        detail = f"Invalid identifier '{identifier}'" if identifier is not None else self.detail
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail=detail, identifier=identifier, **kwargs)


# =============================================================================
# EXTERNAL SERVICE EXCEPTIONS
# =============================================================================

class ExternalServiceError(EmrServiceError):
    """Raised when an external service call fails."""

    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "External service error"


class SmsDeliveryError(ExternalServiceError):
    """Raised when the SMS gateway cannot be reached."""

    detail = "Failed to send SMS"


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def emr_service_exception_handler(
    request: Request,
    exc: EmrServiceError
) -> JSONResponse:
    """
    Handle EmrServiceError exceptions and return consistent JSON responses.
    """
    logger.warning(
        f"EmrServiceError: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "context": exc.context
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(EmrServiceError, emr_service_exception_handler)
