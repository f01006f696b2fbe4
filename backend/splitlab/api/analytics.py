"""Analytics and view tracking endpoints."""
from fastapi import APIRouter, Depends

from splitlab.api.deps import (
    RateLimitGuard,
    get_analytics_service,
    get_experiment_service,
    get_view_recorder,
    to_http_exception,
)
from splitlab.schemas.analytics import AnalyticsResponse, AnalyticsSummaryResponse
from splitlab.schemas.experiment import ExperimentDetailResponse
from splitlab.schemas.view import TrackViewRequest, ViewResponse
from splitlab.services.analytics import AnalyticsService
from splitlab.services.errors import SplitLabError
from splitlab.services.experiments import ExperimentService
from splitlab.services.views import ViewRecorder

router = APIRouter()


@router.get("/experiments/{experiment_id}/analytics", response_model=AnalyticsResponse)
def get_analytics(
    experiment_id: str,
    analytics: AnalyticsService = Depends(get_analytics_service),
    experiments: ExperimentService = Depends(get_experiment_service)
):
    """
    View statistics for an experiment.

    Recomputed from stored views on every request: total views, count and
    share per variation (zero-view variations included), and views by country.
    """
    try:
        summary = analytics.summarize(experiment_id)
        experiment = experiments.get_experiment(summary.experiment_id)
    except SplitLabError as e:
        raise to_http_exception(e)

    return AnalyticsResponse(
        experiment=ExperimentDetailResponse.model_validate(experiment),
        analytics=AnalyticsSummaryResponse.model_validate(summary)
    )


@router.post(
    "/track-view/{experiment_id}",
    response_model=ViewResponse,
    status_code=201,
    dependencies=[Depends(RateLimitGuard("track_view"))]
)
def track_view(
    experiment_id: str,
    payload: TrackViewRequest,
    recorder: ViewRecorder = Depends(get_view_recorder)
):
    """Record that a visitor was shown a variation."""
    try:
        return recorder.record(
            experiment_id,
            payload.variation_id,
            user_agent=payload.user_agent,
            country=payload.country
        )
    except SplitLabError as e:
        raise to_http_exception(e)
