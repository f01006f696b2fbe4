"""View aggregation for experiment analytics.

Counts are recomputed from the views table on every call. Each summary is
built from two grouped queries (per variation, per country), so a view
recorded between them may show up in one breakdown and not the other, but no
row is ever counted twice within a breakdown.
"""
from dataclasses import dataclass, field
from typing import List, Optional
import uuid

from splitlab.models.variation import VariationType
from splitlab.services.errors import NotFoundError
from splitlab.services.repository import ExperimentRepository, Identifier

# Label for views recorded without a country
UNKNOWN_COUNTRY_LABEL = "unknown"


@dataclass
class VariationStats:
    variation_id: uuid.UUID
    type: VariationType
    views: int
    percentage: float


@dataclass
class CountryStats:
    country: Optional[str]
    label: str
    views: int


@dataclass
class ExperimentSummary:
    experiment_id: uuid.UUID
    total_views: int
    per_variation: List[VariationStats] = field(default_factory=list)
    by_country: List[CountryStats] = field(default_factory=list)


def percentage_of(views: int, total_views: int) -> float:
    """Share of ``total_views`` as a percentage; 0.0 when there are no views."""
    if total_views <= 0:
        return 0.0
    return 100.0 * views / total_views


class AnalyticsService:
    """Computes view totals, per-variation shares and country breakdowns."""

    def __init__(self, repository: ExperimentRepository):
        self.repository = repository

    def summarize(self, experiment_id: Identifier) -> ExperimentSummary:
        """
        Aggregate all views recorded for an experiment.

        Every variation of the experiment is reported, including those with
        no views. ``total_views`` is the sum of the per-variation counts, and
        percentages sum to 100 whenever there is at least one view.

        Raises:
            NotFoundError: If the experiment does not exist
        """
        experiment = self.repository.get_experiment(experiment_id)
        if not experiment:
            raise NotFoundError("Experiment not found")

        variations = self.repository.list_variations(experiment.id)
        counts = self.repository.count_views_by_variation(experiment.id)

        # Views pointing at variations outside the current set are ignored so
        # the total always equals the sum of reported rows
        per_variation_counts = [(v, counts.get(v.id, 0)) for v in variations]
        total_views = sum(views for _, views in per_variation_counts)

        per_variation = [
            VariationStats(
                variation_id=variation.id,
                type=variation.type,
                views=views,
                percentage=percentage_of(views, total_views)
            )
            for variation, views in per_variation_counts
        ]

        return ExperimentSummary(
            experiment_id=experiment.id,
            total_views=total_views,
            per_variation=per_variation,
            by_country=self._country_breakdown(experiment.id)
        )

    def _country_breakdown(self, experiment_id: uuid.UUID) -> List[CountryStats]:
        """Group views by raw country; None and "" stay separate buckets."""
        rows = [
            CountryStats(
                country=country,
                label=UNKNOWN_COUNTRY_LABEL if country is None else country,
                views=views
            )
            for country, views in self.repository.count_views_by_country(experiment_id)
        ]
        # Most viewed first; absent country sorts after a present one on ties
        rows.sort(key=lambda row: (-row.views, row.country is None, row.country or ""))
        return rows
