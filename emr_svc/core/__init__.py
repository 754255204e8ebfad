"""
Core module for application configuration, logging, and shared constants.

This module provides:
- Settings: Application configuration via pydantic-settings
- Exceptions: Domain-specific exception classes with HTTP status codes
- Query registry: named SQL templates loaded once at startup
- Datetime utilities: day windows and database formatting

Dependency injection functions live in emr_svc.core.dependencies.
"""
from emr_svc.core.config import settings, Settings

from emr_svc.core.exceptions import (
    EmrServiceError,
    NotFoundError,
    QueryNotFoundError,
    IdentifierTypeNotFoundError,
    IdentifierSourceNotFoundError,
    LocationNotFoundError,
    TemplateError,
    BindingError,
    QueryExecutionError,
    AlreadyProvisionedError,
    ConfigError,
    CapacityError,
    InvalidIdentifierError,
    ExternalServiceError,
    SmsDeliveryError,
    setup_exception_handlers,
)

from emr_svc.core.query_registry import QueryRegistry, QueryTemplate

from emr_svc.core.datetime_utils import (
    utc_now,
    to_utc,
    day_bounds,
    to_db_string,
    parse_date,
)

__all__ = [
    # Settings
    "settings",
    "Settings",
    # Exceptions
    "EmrServiceError",
    "NotFoundError",
    "QueryNotFoundError",
    "IdentifierTypeNotFoundError",
    "IdentifierSourceNotFoundError",
    "LocationNotFoundError",
    "TemplateError",
    "BindingError",
    "QueryExecutionError",
    "AlreadyProvisionedError",
    "ConfigError",
    "CapacityError",
    "InvalidIdentifierError",
    "ExternalServiceError",
    "SmsDeliveryError",
    "setup_exception_handlers",
    # Query registry
    "QueryRegistry",
    "QueryTemplate",
    # Datetime utilities
    "utc_now",
    "to_utc",
    "day_bounds",
    "to_db_string",
    "parse_date",
]
