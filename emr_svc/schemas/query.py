"""
Pydantic schemas for named query execution.
"""
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Schema for running a named query with a JSON body.

    Each parameter is a scalar or a list of scalars; a list may only fill a
    whole IN (...) list. Placeholders left out bind NULL.
    """
    params: Dict[str, Any] = Field(
        default_factory=dict,
        description="Named parameters for the query template",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "params": {
                    "location_uuid": "a7b6c8d0-1f3e-4b5a-9c2d-7e8f9a0b1c2d",
                    "visit_type": ["OUTPATIENT", "INPATIENT"]
                }
            }
        }


class QueryResultResponse(BaseModel):
    """Schema for query results: rows keep the result set's column order."""
    query_id: str = Field(..., description="The query that was run")
    count: int = Field(..., ge=0, description="Number of rows returned")
    rows: List[Dict[str, Any]] = Field(default_factory=list, description="Result rows")


class QueryListResponse(BaseModel):
    """Schema for the registered query ids."""
    queries: List[str] = Field(default_factory=list, description="Registered query ids, sorted")
