"""View tracking schemas."""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID


class TrackViewRequest(BaseModel):
    """Request to record one impression of a variation."""

    variation_id: str = Field(..., min_length=1, description="Variation that was displayed")
    user_agent: Optional[str] = Field(None, description="Stored verbatim")
    country: Optional[str] = Field(None, description="Stored verbatim; omitted and \"\" are distinct")

    class Config:
        json_schema_extra = {
            "example": {
                "variation_id": "123e4567-e89b-12d3-a456-426614174001",
                "user_agent": "Mozilla/5.0",
                "country": "FR"
            }
        }


class ViewResponse(BaseModel):
    id: UUID
    experiment_id: UUID
    variation_id: UUID
    user_agent: Optional[str] = None
    country: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True
