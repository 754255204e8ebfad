"""
Facility router - setup status, default location and KenyaEMR identifiers.

Architecture:
    HTTP Request → Router (this file) → EmrService → repositories / IdentifierService
"""
import logging

from typing import Optional

from fastapi import APIRouter, Depends

from emr_svc.core.dependencies import get_emr_service
from emr_svc.core.exceptions import LocationNotFoundError
from emr_svc.schemas import (
    DefaultLocationUpdate,
    IdentifierSourceResponse,
    LocationResponse,
    NextUpnRequest,
    SetupStatusResponse,
    SourceSetupRequest,
    UpnResponse,
)
from emr_svc.services.emr_service import EmrService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/facility",
    tags=["Facility"],
)


@router.get("/setup-status", response_model=SetupStatusResponse, summary="Is facility setup still required?")
def get_setup_status(emr_service: EmrService = Depends(get_emr_service)):
    return SetupStatusResponse(setup_required=emr_service.is_setup_required())


@router.get("/default-location", response_model=LocationResponse, summary="Get the default location")
def get_default_location(emr_service: EmrService = Depends(get_emr_service)):
    location = emr_service.get_default_location()
    if location is None:
        raise LocationNotFoundError(detail="No default location is configured")
    return LocationResponse(**location.to_dict())


@router.put("/default-location", response_model=LocationResponse, summary="Set the default location")
def set_default_location(
    update: DefaultLocationUpdate,
    emr_service: EmrService = Depends(get_emr_service)
):
    location = emr_service.set_default_location(update.location_id)
    return LocationResponse(**location.to_dict())


@router.get(
    "/locations/by-mfl/{mfl_code}",
    response_model=LocationResponse,
    summary="Find a location by MFL code"
)
def get_location_by_mfl_code(mfl_code: str, emr_service: EmrService = Depends(get_emr_service)):
    location = emr_service.get_location_by_mfl_code(mfl_code)
    if location is None:
        raise LocationNotFoundError(detail=f"No location with MFL code {mfl_code}", mfl_code=mfl_code)
    return LocationResponse(**location.to_dict())


@router.post(
    "/identifier-sources/mrn",
    response_model=IdentifierSourceResponse,
    status_code=201,
    summary="Set up the medical record number source"
)
def setup_mrn_identifier_source(
    request: Optional[SourceSetupRequest] = None,
    emr_service: EmrService = Depends(get_emr_service)
):
    source = emr_service.setup_mrn_identifier_source(request.start_from if request else None)
    return IdentifierSourceResponse(**source.to_dict())


@router.post(
    "/identifier-sources/upn",
    response_model=IdentifierSourceResponse,
    status_code=201,
    summary="Set up the HIV unique patient number source"
)
def setup_upn_identifier_source(
    request: Optional[SourceSetupRequest] = None,
    emr_service: EmrService = Depends(get_emr_service)
):
    source = emr_service.setup_hiv_unique_identifier_source(request.start_from if request else None)
    return IdentifierSourceResponse(**source.to_dict())


@router.post("/upn/next", response_model=UpnResponse, summary="Mint the next HIV unique patient number")
def next_unique_patient_number(
    request: Optional[NextUpnRequest] = None,
    emr_service: EmrService = Depends(get_emr_service)
):
    return UpnResponse(identifier=emr_service.get_next_hiv_unique_patient_number(request.comment if request else None))
