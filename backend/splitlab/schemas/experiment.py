"""Experiment and variation schemas."""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from uuid import UUID

from splitlab.models.variation import VariationType


class VariationCreate(BaseModel):
    """Variation payload for create and replace requests."""

    content: str = Field(..., min_length=1, description="HTML content shown to visitors")
    weight: int = Field(..., gt=0, strict=True, description="Relative selection weight")
    type: VariationType = Field(..., description="Variation slot, A or B")

    class Config:
        json_schema_extra = {
            "example": {
                "content": "<button class=\"cta\">Start free trial</button>",
                "weight": 50,
                "type": "A"
            }
        }


class ExperimentCreate(BaseModel):
    """Request to create an experiment with both of its variations."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    variations: List[VariationCreate] = Field(..., min_length=2, max_length=2)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('name must not be blank')
        return v

    @field_validator('variations')
    @classmethod
    def validate_distinct_types(cls, v):
        if len({variation.type for variation in v}) != len(v):
            raise ValueError('variation types must be distinct')
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Homepage CTA",
                "description": "Trial button copy",
                "variations": [
                    {"content": "<button>Start free trial</button>", "weight": 50, "type": "A"},
                    {"content": "<button>Try it free</button>", "weight": 50, "type": "B"}
                ]
            }
        }


class VariationResponse(BaseModel):
    id: UUID
    experiment_id: UUID
    content: str
    weight: int
    type: VariationType
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExperimentResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExperimentDetailResponse(ExperimentResponse):
    """Experiment with its variations."""

    variations: List[VariationResponse] = []


class DeleteResponse(BaseModel):
    message: str = Field(default="Experiment deleted successfully")
