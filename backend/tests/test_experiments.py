"""Tests for experiment service and store."""
import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from splitlab.models.experiment import Experiment
from splitlab.models.variation import Variation, VariationType
from splitlab.models.view import View
from splitlab.services.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from splitlab.services.experiments import ExperimentService
from splitlab.services.repository import ExperimentRepository


def make_variations(weight_a=1, weight_b=1):
    return [
        {"content": "<p>Variation A</p>", "weight": weight_a, "type": "A"},
        {"content": "<p>Variation B</p>", "weight": weight_b, "type": "B"},
    ]


@pytest.fixture
def service(repository):
    return ExperimentService(repository)


def test_create_experiment_with_two_variations(service: ExperimentService):
    """Test that an experiment and both variations are created together."""
    experiment = service.create_experiment("Homepage", "CTA copy", make_variations(3, 1))

    assert experiment.id is not None
    assert experiment.name == "Homepage"
    assert [v.type for v in experiment.variations] == [VariationType.A, VariationType.B]
    assert [v.weight for v in experiment.variations] == [3, 1]
    assert all(v.experiment_id == experiment.id for v in experiment.variations)


@pytest.mark.parametrize("variations", [
    make_variations()[:1],
    make_variations() + [{"content": "<p>C</p>", "weight": 1, "type": "A"}],
    [],
])
def test_create_experiment_requires_exactly_two_variations(service, variations):
    with pytest.raises(ValidationError):
        service.create_experiment("Homepage", None, variations)


def test_create_experiment_rejects_duplicate_types(service):
    variations = make_variations()
    variations[1]["type"] = "A"

    with pytest.raises(ValidationError):
        service.create_experiment("Homepage", None, variations)


@pytest.mark.parametrize("weight", [0, -5, "10", 1.5, True, None])
def test_create_experiment_rejects_bad_weights(service, weight):
    variations = make_variations()
    variations[0]["weight"] = weight

    with pytest.raises(ValidationError):
        service.create_experiment("Homepage", None, variations)


def test_create_experiment_rejects_unknown_type(service):
    variations = make_variations()
    variations[1]["type"] = "C"

    with pytest.raises(ValidationError):
        service.create_experiment("Homepage", None, variations)


def test_create_experiment_requires_name(service):
    with pytest.raises(ValidationError):
        service.create_experiment("   ", None, make_variations())


def test_weights_do_not_need_to_sum_to_100(service):
    experiment = service.create_experiment("Big weights", None, make_variations(700, 1300))

    assert sum(v.weight for v in experiment.variations) == 2000


def test_get_experiment_not_found(service):
    with pytest.raises(NotFoundError):
        service.get_experiment(uuid.uuid4())


def test_malformed_id_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.get_experiment("not-a-uuid")


def test_add_variation_with_taken_type_conflicts(service):
    """Second A variation fails regardless of different content and weight."""
    experiment = service.create_experiment("Homepage", None, make_variations())

    with pytest.raises(ConflictError):
        service.add_variation(experiment.id, "<p>Another A</p>", 99, "A")


def test_add_variation_to_missing_experiment(service):
    with pytest.raises(NotFoundError):
        service.add_variation(uuid.uuid4(), "<p>A</p>", 1, "A")


def test_add_variation_into_free_slot(service, repository, db: Session):
    experiment = service.create_experiment("Homepage", None, make_variations())
    variation_b = next(v for v in experiment.variations if v.type == VariationType.B)
    db.delete(variation_b)
    db.commit()

    added = service.add_variation(experiment.id, "<p>New B</p>", 4, "B")

    assert added.type == VariationType.B
    assert [v.type for v in repository.list_variations(experiment.id)] == [VariationType.A, VariationType.B]


def test_update_variation_replaces_fields(service):
    experiment = service.create_experiment("Homepage", None, make_variations())
    variation_a = experiment.variations[0]

    updated = service.update_variation(experiment.id, variation_a.id, "<p>New A</p>", 5, "A")

    assert updated.id == variation_a.id
    assert updated.content == "<p>New A</p>"
    assert updated.weight == 5
    assert updated.type == VariationType.A


def test_update_variation_to_sibling_type_conflicts(service):
    experiment = service.create_experiment("Homepage", None, make_variations())
    variation_a = experiment.variations[0]

    with pytest.raises(ConflictError):
        service.update_variation(experiment.id, variation_a.id, "<p>A</p>", 1, "B")


def test_update_variation_from_other_experiment_not_found(service):
    first = service.create_experiment("First", None, make_variations())
    second = service.create_experiment("Second", None, make_variations())

    with pytest.raises(NotFoundError):
        service.update_variation(first.id, second.variations[0].id, "<p>A</p>", 1, "A")


def test_store_constraint_conflict_is_translated(repository: ExperimentRepository):
    """Inserting past the application check still yields ConflictError, not a raw DB error."""
    experiment = repository.create_experiment("Homepage", None, [
        {"content": "<p>A</p>", "weight": 1, "type": "A"},
    ])

    with pytest.raises(ConflictError):
        repository.add_variation(experiment.id, "<p>Racing A</p>", 1, VariationType.A)

    # Session is usable again after the rollback
    assert len(repository.list_variations(experiment.id)) == 1


def test_store_constraint_conflict_on_update(repository: ExperimentRepository):
    experiment = repository.create_experiment("Homepage", None, [
        {"content": "<p>A</p>", "weight": 1, "type": "A"},
        {"content": "<p>B</p>", "weight": 1, "type": "B"},
    ])
    variation_a = repository.list_variations(experiment.id)[0]

    with pytest.raises(ConflictError):
        repository.update_variation(variation_a, "<p>A</p>", 1, VariationType.B)


def test_store_unavailable_is_persistence_error():
    """Connection failures surface as PersistenceError and the session is rolled back."""
    session = MagicMock()
    session.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
    repository = ExperimentRepository(session)

    with pytest.raises(PersistenceError):
        repository.get_experiment(uuid.uuid4())

    session.rollback.assert_called_once()


def test_other_integrity_errors_are_persistence_errors():
    session = MagicMock()
    session.commit.side_effect = IntegrityError(
        "INSERT", {}, Exception("NOT NULL constraint failed: views.variation_id")
    )
    repository = ExperimentRepository(session)

    with pytest.raises(PersistenceError):
        repository.add_view(uuid.uuid4(), uuid.uuid4())

    session.rollback.assert_called_once()


def test_foreign_key_violation_is_not_a_conflict(repository: ExperimentRepository):
    experiment = repository.create_experiment("Homepage", None, [
        {"content": "<p>A</p>", "weight": 1, "type": "A"},
    ])

    with pytest.raises(PersistenceError):
        repository.add_view(experiment.id, uuid.uuid4())

    # Rolled back, so the session keeps working
    assert len(repository.list_variations(experiment.id)) == 1


def test_list_variations_is_ordered_by_type(repository: ExperimentRepository):
    experiment = repository.create_experiment("Homepage", None, [
        {"content": "<p>B</p>", "weight": 1, "type": "B"},
        {"content": "<p>A</p>", "weight": 1, "type": "A"},
    ])

    assert [v.type for v in repository.list_variations(experiment.id)] == [VariationType.A, VariationType.B]


def test_delete_experiment_cascades(service, repository, db: Session):
    experiment = service.create_experiment("Homepage", None, make_variations())
    experiment_id = experiment.id
    variation = experiment.variations[0]
    repository.add_view(experiment_id, variation.id, "agent", "FR")

    service.delete_experiment(experiment_id)

    assert db.query(Experiment).filter(Experiment.id == experiment_id).count() == 0
    assert db.query(Variation).filter(Variation.experiment_id == experiment_id).count() == 0
    assert db.query(View).filter(View.experiment_id == experiment_id).count() == 0


def test_delete_experiment_leaves_others_untouched(service, db: Session):
    doomed = service.create_experiment("Doomed", None, make_variations())
    kept = service.create_experiment("Kept", None, make_variations())
    kept_id = kept.id

    service.delete_experiment(doomed.id)

    assert db.query(Variation).filter(Variation.experiment_id == kept_id).count() == 2


def test_delete_missing_experiment_not_found(service):
    with pytest.raises(NotFoundError):
        service.delete_experiment(uuid.uuid4())


def test_choose_content_uses_injected_randomness(repository):
    always_high = ExperimentService(repository, random_source=lambda: 0.99)
    always_low = ExperimentService(repository, random_source=lambda: 0.0)
    experiment = always_high.create_experiment("Homepage", None, make_variations(1, 1))

    assert always_high.choose_content(experiment.id).type == VariationType.B
    assert always_low.choose_content(experiment.id).type == VariationType.A


def test_choose_content_missing_experiment(service):
    with pytest.raises(NotFoundError):
        service.choose_content(uuid.uuid4())


def test_choose_content_without_variations(service, repository, db: Session):
    experiment = repository.create_experiment("Empty", None, [])

    with pytest.raises(NotFoundError):
        service.choose_content(experiment.id)
