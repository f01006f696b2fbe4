"""Pydantic schemas for request/response validation."""
from splitlab.schemas.experiment import (
    DeleteResponse,
    ExperimentCreate,
    ExperimentDetailResponse,
    ExperimentResponse,
    VariationCreate,
    VariationResponse,
)
from splitlab.schemas.view import TrackViewRequest, ViewResponse
from splitlab.schemas.analytics import AnalyticsResponse, ContentResponse

__all__ = [
    "DeleteResponse",
    "ExperimentCreate",
    "ExperimentDetailResponse",
    "ExperimentResponse",
    "VariationCreate",
    "VariationResponse",
    "TrackViewRequest",
    "ViewResponse",
    "AnalyticsResponse",
    "ContentResponse",
]
