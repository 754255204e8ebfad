"""
Pydantic schemas for identifier sources and identifiers.
"""
from typing import Optional

from pydantic import BaseModel, Field


class IdentifierSourceCreate(BaseModel):
    """Schema for provisioning the identifier source of an identifier type.

    base_character_set and first_identifier_base may be left out when the
    identifier type has a check-digit validator; they default to the
    validator's characters and its first character.
    """
    identifier_type: str = Field(..., min_length=1, description="Identifier type uuid or name")
    name: str = Field(..., min_length=1, max_length=255, description="Source name")
    description: Optional[str] = Field(None, description="Source description")
    base_character_set: Optional[str] = Field(None, description="Ordered, distinct characters used as digits")
    first_identifier_base: Optional[str] = Field(None, description="First sequence value, written in the base")
    prefix: Optional[str] = Field(None, description="Text placed before every identifier")
    max_length: Optional[int] = Field(
        None, ge=1, description="Maximum length of the whole identifier, prefix and check character included"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "identifier_type": "Unique Patient Number",
                "name": "Kenya EMR - OpenMRS HIV Unique Patient Number",
                "base_character_set": "0123456789",
                "first_identifier_base": "00001"
            }
        }


class IdentifierSourceResponse(BaseModel):
    """Schema for an identifier source."""
    id: int
    identifier_type: str = Field(..., description="Identifier type uuid")
    identifier_type_name: str
    name: str
    description: Optional[str] = None
    prefix: Optional[str] = None
    base_character_set: str
    first_identifier_base: str
    max_length: Optional[int] = None
    validator: Optional[str] = None
    auto_generation_enabled: bool = True
    manual_entry_enabled: bool = True


class SourceSetupRequest(BaseModel):
    """Schema for the MRN / UPN setup shortcuts."""
    start_from: Optional[str] = Field(None, description="First identifier base; optional when the type has a validator")


class NextIdentifierRequest(BaseModel):
    """Schema for minting the next identifier."""
    comment: Optional[str] = Field(None, max_length=255, description="Recorded with the identifier in the log")


class IdentifierResponse(BaseModel):
    """Schema for a minted identifier."""
    identifier: str
    identifier_type: str


class IdentifierValidateRequest(BaseModel):
    """Schema for checking an identifier's check character.

    Give either a validator name or an identifier type whose validator to use.
    """
    identifier: str = Field(..., min_length=1)
    identifier_type: Optional[str] = Field(None, description="Identifier type uuid or name")
    validator: Optional[str] = Field(None, description="Validator name, e.g. LuhnMod30IdentifierValidator")


class IdentifierValidateResponse(BaseModel):
    identifier: str
    valid: bool
