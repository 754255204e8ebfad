"""
Pydantic schemas for SMS notifications.
"""
from pydantic import BaseModel, Field


class SmsRequest(BaseModel):
    """Schema for sending one SMS."""
    recipient: str = Field(..., min_length=1, max_length=32, description="Destination phone number")
    message: str = Field(..., min_length=1, description="Message text")

    class Config:
        json_schema_extra = {
            "example": {
                "recipient": "+254700000000",
                "message": "Your next appointment is on 2025-01-15"
            }
        }


class SmsResponse(BaseModel):
    """Schema for the gateway outcome."""
    delivered: bool
    status_code: int
    response: str
