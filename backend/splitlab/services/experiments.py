"""Experiment service for A/B content tests."""
import random
from typing import Dict, List, Optional

from splitlab.middleware.logging import get_logger
from splitlab.models.experiment import Experiment
from splitlab.models.variation import Variation, VariationType
from splitlab.services.errors import ConflictError, NotFoundError, ValidationError
from splitlab.services.repository import ExperimentRepository, Identifier
from splitlab.services.selection import RandomSource, select_variation

logger = get_logger()

VARIATIONS_PER_EXPERIMENT = 2


def _variation_type(value) -> VariationType:
    try:
        return VariationType(value)
    except ValueError:
        raise ValidationError(f"Invalid variation type: {value!r}") from None


def _check_weight(weight) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(weight, bool) or not isinstance(weight, int) or weight <= 0:
        raise ValidationError("Variation weight must be a positive integer")
    return weight


class ExperimentService:
    """Service for managing experiments and choosing content to display."""

    def __init__(self, repository: ExperimentRepository, random_source: RandomSource = random.random):
        self.repository = repository
        self.random_source = random_source

    def get_experiment(self, experiment_id: Identifier) -> Experiment:
        """Get experiment by id, raising NotFoundError if absent."""
        experiment = self.repository.get_experiment(experiment_id)
        if not experiment:
            raise NotFoundError("Experiment not found")
        return experiment

    def list_experiments(self) -> List[Experiment]:
        return self.repository.list_experiments()

    def create_experiment(
        self,
        name: str,
        description: Optional[str],
        variations: List[Dict]
    ) -> Experiment:
        """
        Create an experiment with exactly two variations.

        Args:
            name: Non-empty experiment name
            description: Optional description
            variations: Two dicts with ``content``, ``weight`` and ``type``;
                types must differ

        Returns:
            Created Experiment instance

        Raises:
            ValidationError: If the name is blank, the variation count is not
                two, a type is repeated or invalid, or a weight is not positive
        """
        if not name or not name.strip():
            raise ValidationError("Experiment name is required")
        if len(variations) != VARIATIONS_PER_EXPERIMENT:
            raise ValidationError(
                f"An experiment needs exactly {VARIATIONS_PER_EXPERIMENT} variations"
            )

        cleaned = []
        for data in variations:
            if not data.get("content"):
                raise ValidationError("Variation content is required")
            cleaned.append({
                "content": data["content"],
                "weight": _check_weight(data.get("weight")),
                "type": _variation_type(data.get("type")),
            })

        if len({v["type"] for v in cleaned}) != len(cleaned):
            raise ValidationError("Variation types must be distinct")

        experiment = self.repository.create_experiment(name, description, cleaned)
        logger.info(
            "experiment_created",
            experiment_id=str(experiment.id),
            weights={v.type.value: v.weight for v in experiment.variations}
        )
        return experiment

    def delete_experiment(self, experiment_id: Identifier) -> None:
        """Delete an experiment with its variations and views."""
        experiment = self.get_experiment(experiment_id)
        deleted_id = str(experiment.id)
        self.repository.delete_experiment(experiment)
        logger.info("experiment_deleted", experiment_id=deleted_id)

    def list_variations(self, experiment_id: Identifier) -> List[Variation]:
        experiment = self.get_experiment(experiment_id)
        return self.repository.list_variations(experiment.id)

    def add_variation(
        self,
        experiment_id: Identifier,
        content: str,
        weight: int,
        variation_type
    ) -> Variation:
        """
        Add a variation to an existing experiment.

        The sibling lookup gives a friendly error early; the unique constraint
        on (experiment_id, type) still decides concurrent inserts, and its
        violation is reported as the same ConflictError.

        Raises:
            ValidationError: Invalid content, weight or type
            NotFoundError: Experiment does not exist
            ConflictError: Experiment already has a variation of this type
        """
        if not content:
            raise ValidationError("Variation content is required")
        weight = _check_weight(weight)
        variation_type = _variation_type(variation_type)

        experiment = self.get_experiment(experiment_id)

        if self.repository.find_variation_by_type(experiment.id, variation_type):
            logger.warning(
                "variation_type_conflict",
                experiment_id=str(experiment.id),
                variation_type=variation_type.value
            )
            raise ConflictError(f"Variation type {variation_type.value} already exists")

        variation = self.repository.add_variation(experiment.id, content, weight, variation_type)
        logger.info(
            "variation_added",
            experiment_id=str(experiment.id),
            variation_id=str(variation.id),
            variation_type=variation_type.value
        )
        return variation

    def update_variation(
        self,
        experiment_id: Identifier,
        variation_id: Identifier,
        content: str,
        weight: int,
        variation_type
    ) -> Variation:
        """
        Replace a variation's content, weight and type.

        Raises:
            ValidationError: Invalid content, weight or type
            NotFoundError: Experiment or variation missing, or the variation
                belongs to another experiment
            ConflictError: Another variation of the experiment has this type
        """
        if not content:
            raise ValidationError("Variation content is required")
        weight = _check_weight(weight)
        variation_type = _variation_type(variation_type)

        experiment = self.get_experiment(experiment_id)
        variation = self.repository.get_variation(variation_id)
        if not variation or variation.experiment_id != experiment.id:
            raise NotFoundError("Variation not found")

        if self.repository.find_variation_by_type(experiment.id, variation_type, exclude_id=variation.id):
            logger.warning(
                "variation_type_conflict",
                experiment_id=str(experiment.id),
                variation_id=str(variation.id),
                variation_type=variation_type.value
            )
            raise ConflictError(f"Variation type {variation_type.value} already exists")

        variation = self.repository.update_variation(variation, content, weight, variation_type)
        logger.info(
            "variation_updated",
            experiment_id=str(experiment.id),
            variation_id=str(variation.id),
            variation_type=variation_type.value,
            weight=weight
        )
        return variation

    def choose_content(self, experiment_id: Identifier) -> Variation:
        """
        Pick the variation to display for an experiment.

        Variations come back ordered by type, so the all-zero-weights
        fallback consistently serves A.

        Raises:
            NotFoundError: If the experiment does not exist or has no variations
        """
        experiment = self.get_experiment(experiment_id)
        variations = self.repository.list_variations(experiment.id)
        if not variations:
            raise NotFoundError("Experiment has no variations")

        return select_variation(variations, self.random_source)
