"""
Pydantic schemas for API request/response validation.
"""
from emr_svc.schemas.identifier import (
    IdentifierResponse,
    IdentifierSourceCreate,
    IdentifierSourceResponse,
    IdentifierValidateRequest,
    IdentifierValidateResponse,
    NextIdentifierRequest,
    SourceSetupRequest,
)
from emr_svc.schemas.location import (
    DefaultLocationUpdate,
    LocationResponse,
    NextUpnRequest,
    SetupStatusResponse,
    UpnResponse,
)
from emr_svc.schemas.query import QueryListResponse, QueryRequest, QueryResultResponse
from emr_svc.schemas.sms import SmsRequest, SmsResponse

__all__ = [
    # Identifier schemas
    "IdentifierResponse",
    "IdentifierSourceCreate",
    "IdentifierSourceResponse",
    "IdentifierValidateRequest",
    "IdentifierValidateResponse",
    "NextIdentifierRequest",
    "SourceSetupRequest",
    # Facility schemas
    "DefaultLocationUpdate",
    "LocationResponse",
    "NextUpnRequest",
    "SetupStatusResponse",
    "UpnResponse",
    # Query schemas
    "QueryListResponse",
    "QueryRequest",
    "QueryResultResponse",
    # SMS schemas
    "SmsRequest",
    "SmsResponse",
]
