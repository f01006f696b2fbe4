"""Database models."""
from splitlab.models.experiment import Experiment
from splitlab.models.variation import Variation, VariationType
from splitlab.models.view import View

__all__ = ["Experiment", "Variation", "VariationType", "View"]
