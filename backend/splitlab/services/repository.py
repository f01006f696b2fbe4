"""Experiment store backed by SQLAlchemy.

All reads and writes for experiments, variations and views go through
ExperimentRepository so the services never touch query construction. Database
failures are translated into the domain errors from ``services.errors``.
"""
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from splitlab.middleware.logging import get_logger
from splitlab.models.experiment import Experiment
from splitlab.models.variation import Variation, VariationType, VARIATION_TYPE_CONSTRAINT
from splitlab.models.view import View
from splitlab.services.errors import ConflictError, PersistenceError

logger = get_logger()

Identifier = Union[uuid.UUID, str]

# SQLite reports the columns instead of the constraint name
_SQLITE_TYPE_CONSTRAINT = "variations.experiment_id, variations.type"


def as_uuid(value: Identifier) -> Optional[uuid.UUID]:
    """Coerce an identifier to a UUID, or None if it is not one."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


def is_variation_type_violation(exc: IntegrityError) -> bool:
    """Check whether an IntegrityError came from the (experiment_id, type) constraint."""
    message = str(exc.orig)
    return VARIATION_TYPE_CONSTRAINT in message or _SQLITE_TYPE_CONSTRAINT in message


class ExperimentRepository:
    """Persistence for experiments, their variations and view events."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _translate_errors(self, operation: str):
        """Roll back and map database failures onto domain errors."""
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            if is_variation_type_violation(e):
                raise ConflictError("Variation type already exists for this experiment") from e
            logger.error("store_integrity_error", operation=operation, error=str(e.orig))
            raise PersistenceError(f"Constraint violation during {operation}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("store_error", operation=operation, error=str(e), error_type=type(e).__name__)
            raise PersistenceError(f"Store failure during {operation}") from e

    # Experiments

    def get_experiment(self, experiment_id: Identifier) -> Optional[Experiment]:
        """Get experiment by id, or None if it does not exist."""
        key = as_uuid(experiment_id)
        if key is None:
            return None
        with self._translate_errors("get_experiment"):
            return self.db.query(Experiment).filter(Experiment.id == key).first()

    def list_experiments(self) -> List[Experiment]:
        """All experiments, newest first."""
        with self._translate_errors("list_experiments"):
            return self.db.query(Experiment).order_by(Experiment.created_at.desc()).all()

    def create_experiment(
        self,
        name: str,
        description: Optional[str],
        variations: List[Dict]
    ) -> Experiment:
        """
        Insert an experiment together with its variations in one transaction.

        Args:
            name: Experiment name
            description: Optional description
            variations: Dicts with ``content``, ``weight`` and ``type`` keys

        Returns:
            Created Experiment with variations loaded
        """
        timestamp = datetime.utcnow()
        experiment = Experiment(
            name=name,
            description=description,
            created_at=timestamp,
            updated_at=timestamp
        )
        for data in variations:
            experiment.variations.append(Variation(
                content=data["content"],
                weight=data["weight"],
                type=VariationType(data["type"]),
                created_at=timestamp,
                updated_at=timestamp
            ))

        with self._translate_errors("create_experiment"):
            self.db.add(experiment)
            self.db.commit()
            self.db.refresh(experiment)
        return experiment

    def delete_experiment(self, experiment: Experiment) -> None:
        """
        Delete an experiment and everything that depends on it.

        Views and variations are removed explicitly rather than relying on the
        backend's foreign key cascade, so the guarantee holds on every store.
        """
        with self._translate_errors("delete_experiment"):
            self.db.query(View).filter(
                View.experiment_id == experiment.id
            ).delete(synchronize_session=False)
            self.db.query(Variation).filter(
                Variation.experiment_id == experiment.id
            ).delete(synchronize_session=False)
            self.db.query(Experiment).filter(
                Experiment.id == experiment.id
            ).delete(synchronize_session=False)
            self.db.commit()

    # Variations

    def list_variations(self, experiment_id: Identifier) -> List[Variation]:
        """Variations of an experiment ordered by type (A before B)."""
        key = as_uuid(experiment_id)
        if key is None:
            return []
        with self._translate_errors("list_variations"):
            return self.db.query(Variation).filter(
                Variation.experiment_id == key
            ).order_by(Variation.type.asc()).all()

    def get_variation(self, variation_id: Identifier) -> Optional[Variation]:
        """Get variation by id regardless of owning experiment."""
        key = as_uuid(variation_id)
        if key is None:
            return None
        with self._translate_errors("get_variation"):
            return self.db.query(Variation).filter(Variation.id == key).first()

    def find_variation_by_type(
        self,
        experiment_id: uuid.UUID,
        variation_type: VariationType,
        exclude_id: Optional[uuid.UUID] = None
    ) -> Optional[Variation]:
        """Find a sibling variation holding ``variation_type``, skipping ``exclude_id``."""
        with self._translate_errors("find_variation_by_type"):
            query = self.db.query(Variation).filter(
                Variation.experiment_id == experiment_id,
                Variation.type == variation_type
            )
            if exclude_id is not None:
                query = query.filter(Variation.id != exclude_id)
            return query.first()

    def add_variation(
        self,
        experiment_id: uuid.UUID,
        content: str,
        weight: int,
        variation_type: VariationType
    ) -> Variation:
        """Insert a variation. Raises ConflictError if the type is taken at commit."""
        timestamp = datetime.utcnow()
        variation = Variation(
            experiment_id=experiment_id,
            content=content,
            weight=weight,
            type=variation_type,
            created_at=timestamp,
            updated_at=timestamp
        )
        with self._translate_errors("add_variation"):
            self.db.add(variation)
            self.db.commit()
            self.db.refresh(variation)
        return variation

    def update_variation(
        self,
        variation: Variation,
        content: str,
        weight: int,
        variation_type: VariationType
    ) -> Variation:
        """Replace a variation's content, weight and type in place."""
        with self._translate_errors("update_variation"):
            variation.content = content
            variation.weight = weight
            variation.type = variation_type
            variation.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(variation)
        return variation

    # Views

    def add_view(
        self,
        experiment_id: uuid.UUID,
        variation_id: uuid.UUID,
        user_agent: Optional[str] = None,
        country: Optional[str] = None
    ) -> View:
        """Append one view event."""
        view = View(
            experiment_id=experiment_id,
            variation_id=variation_id,
            user_agent=user_agent,
            country=country,
            timestamp=datetime.utcnow()
        )
        with self._translate_errors("add_view"):
            self.db.add(view)
            self.db.commit()
            self.db.refresh(view)
        return view

    def count_views_by_variation(self, experiment_id: uuid.UUID) -> Dict[uuid.UUID, int]:
        """Map of variation id to view count, only for variations with views."""
        with self._translate_errors("count_views_by_variation"):
            rows = self.db.query(
                View.variation_id,
                func.count(View.id).label("views")
            ).filter(
                View.experiment_id == experiment_id
            ).group_by(View.variation_id).all()
        return {variation_id: int(count) for variation_id, count in rows}

    def count_views_by_country(self, experiment_id: uuid.UUID) -> List[Tuple[Optional[str], int]]:
        """(country, count) pairs grouped on the raw stored country value."""
        with self._translate_errors("count_views_by_country"):
            rows = self.db.query(
                View.country,
                func.count(View.id).label("views")
            ).filter(
                View.experiment_id == experiment_id
            ).group_by(View.country).all()
        return [(country, int(count)) for country, count in rows]
