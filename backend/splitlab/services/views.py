"""View recording for experiment impressions."""
from typing import Optional

from splitlab.middleware.logging import get_logger
from splitlab.models.view import View
from splitlab.services.errors import NotFoundError
from splitlab.services.repository import ExperimentRepository, Identifier

logger = get_logger()


class ViewRecorder:
    """Validates and appends immutable view events."""

    def __init__(self, repository: ExperimentRepository):
        self.repository = repository

    def record(
        self,
        experiment_id: Identifier,
        variation_id: Identifier,
        user_agent: Optional[str] = None,
        country: Optional[str] = None
    ) -> View:
        """
        Record one impression of a variation.

        ``user_agent`` and ``country`` are stored exactly as given; an empty
        string and None are kept as different values.

        Raises:
            NotFoundError: If the experiment does not exist, or the variation
                does not exist or belongs to a different experiment
        """
        experiment = self.repository.get_experiment(experiment_id)
        if not experiment:
            raise NotFoundError("Experiment not found")

        variation = self.repository.get_variation(variation_id)
        if not variation or variation.experiment_id != experiment.id:
            logger.warning(
                "view_invalid_variation",
                experiment_id=str(experiment.id),
                variation_id=str(variation_id),
                exists=variation is not None
            )
            raise NotFoundError("Variation not found")

        view = self.repository.add_view(
            experiment_id=experiment.id,
            variation_id=variation.id,
            user_agent=user_agent,
            country=country
        )

        logger.info(
            "view_recorded",
            experiment_id=str(experiment.id),
            variation_id=str(variation.id),
            variation_type=variation.type.value
        )
        return view
