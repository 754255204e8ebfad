"""
Identifiers router - identifier sources, minting and validation.

Architecture:
    HTTP Request → Router (this file) → IdentifierService → IdentifierRepository → Database
                                                          → SequentialIdentifierGenerator
"""
import logging

from typing import Optional

from fastapi import APIRouter, Depends

from emr_svc.core.dependencies import get_identifier_service
from emr_svc.schemas import (
    IdentifierResponse,
    IdentifierSourceCreate,
    IdentifierSourceResponse,
    IdentifierValidateRequest,
    IdentifierValidateResponse,
    NextIdentifierRequest,
)
from emr_svc.services.identifier_service import IdentifierService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1",
    tags=["Identifiers"],
)


@router.post(
    "/identifier-sources",
    response_model=IdentifierSourceResponse,
    status_code=201,
    summary="Provision an identifier source",
    description="Create the sequential identifier source of an identifier type. "
                "Each identifier type has at most one source; a second request returns 409."
)
def create_identifier_source(
    source: IdentifierSourceCreate,
    identifier_service: IdentifierService = Depends(get_identifier_service)
):
    created = identifier_service.provision(
        identifier_type=source.identifier_type,
        name=source.name,
        description=source.description,
        base_character_set=source.base_character_set,
        first_identifier_base=source.first_identifier_base,
        prefix=source.prefix,
        max_length=source.max_length,
    )
    return IdentifierSourceResponse(**created.to_dict())


@router.get(
    "/identifier-sources/{identifier_type}",
    response_model=IdentifierSourceResponse,
    summary="Get the identifier source of a type"
)
def get_identifier_source(
    identifier_type: str,
    identifier_service: IdentifierService = Depends(get_identifier_service)
):
    return IdentifierSourceResponse(**identifier_service.get_source(identifier_type).to_dict())


@router.post(
    "/identifier-sources/{identifier_type}/next",
    response_model=IdentifierResponse,
    summary="Mint the next identifier",
    description="Take the next identifier from the type's source. Concurrent requests never receive the same identifier."
)
def mint_next_identifier(
    identifier_type: str,
    request: Optional[NextIdentifierRequest] = None,
    identifier_service: IdentifierService = Depends(get_identifier_service)
):
    identifier = identifier_service.mint_next(identifier_type, comment=request.comment if request else None)
    return IdentifierResponse(identifier=identifier, identifier_type=identifier_type)


@router.post(
    "/identifiers/validate",
    response_model=IdentifierValidateResponse,
    summary="Check an identifier's check character"
)
def validate_identifier(
    request: IdentifierValidateRequest,
    identifier_service: IdentifierService = Depends(get_identifier_service)
):
    valid = identifier_service.is_valid(
        request.identifier,
        identifier_type=request.identifier_type,
        validator=request.validator,
    )
    return IdentifierValidateResponse(identifier=request.identifier, valid=valid)
