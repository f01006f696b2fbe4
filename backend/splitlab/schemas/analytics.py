"""Analytics and content delivery schemas."""
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID

from splitlab.models.variation import VariationType
from splitlab.schemas.experiment import ExperimentDetailResponse


class VariationStatsResponse(BaseModel):
    variation_id: UUID
    type: VariationType
    views: int
    percentage: float

    class Config:
        from_attributes = True


class CountryStatsResponse(BaseModel):
    # null when the view was recorded without a country
    country: Optional[str] = None
    label: str
    views: int

    class Config:
        from_attributes = True


class AnalyticsSummaryResponse(BaseModel):
    total_views: int
    per_variation: List[VariationStatsResponse]
    by_country: List[CountryStatsResponse]

    class Config:
        from_attributes = True


class AnalyticsResponse(BaseModel):
    """Experiment with its aggregated view statistics."""

    experiment: ExperimentDetailResponse
    analytics: AnalyticsSummaryResponse


class ContentResponse(BaseModel):
    """Variation chosen for display."""

    content: str
    variation_id: UUID

    class Config:
        json_schema_extra = {
            "example": {
                "content": "<button>Try it free</button>",
                "variation_id": "123e4567-e89b-12d3-a456-426614174001"
            }
        }
