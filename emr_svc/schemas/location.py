"""
Pydantic schemas for facility setup and locations.
"""
from typing import Optional

from pydantic import BaseModel, Field


class LocationResponse(BaseModel):
    """Schema for a location (facility)."""
    id: int
    uuid: str
    name: str
    mfl_code: Optional[str] = Field(None, description="Master Facility List code")
    retired: bool = False


class DefaultLocationUpdate(BaseModel):
    location_id: int = Field(..., ge=1, description="Location to use as the facility default")


class SetupStatusResponse(BaseModel):
    setup_required: bool


class NextUpnRequest(BaseModel):
    comment: Optional[str] = Field(None, max_length=255, description="Defaults to 'KenyaEMR Service'")


class UpnResponse(BaseModel):
    identifier: str = Field(..., description="Facility MFL code followed by the next sequence number")
