"""Sample data for empty databases."""
from typing import Optional

from sqlalchemy.orm import Session

from splitlab.models.experiment import Experiment
from splitlab.services.experiments import ExperimentService
from splitlab.services.repository import ExperimentRepository

SAMPLE_EXPERIMENT = {
    "name": "Homepage CTA",
    "description": "Trial button copy: direct vs friendly",
    "variations": [
        {"content": "<button class=\"cta\">Start free trial</button>", "weight": 50, "type": "A"},
        {"content": "<button class=\"cta\">Try it free, no card needed</button>", "weight": 50, "type": "B"},
    ],
}


def seed_sample_experiment(db: Session) -> Optional[Experiment]:
    """
    Create the sample experiment if no experiment exists yet.

    Returns:
        The created experiment, or None if the database already had data
    """
    if db.query(Experiment).first():
        return None

    service = ExperimentService(ExperimentRepository(db))
    return service.create_experiment(**SAMPLE_EXPERIMENT)
