"""Experiment and variation management endpoints."""
from typing import List

from fastapi import APIRouter, Depends

from splitlab.api.deps import get_experiment_service, to_http_exception
from splitlab.schemas.experiment import (
    DeleteResponse,
    ExperimentCreate,
    ExperimentDetailResponse,
    ExperimentResponse,
    VariationCreate,
    VariationResponse,
)
from splitlab.services.errors import SplitLabError
from splitlab.services.experiments import ExperimentService

router = APIRouter(prefix="/experiments")


@router.get("", response_model=List[ExperimentResponse])
def list_experiments(service: ExperimentService = Depends(get_experiment_service)):
    """List all experiments, newest first."""
    try:
        return service.list_experiments()
    except SplitLabError as e:
        raise to_http_exception(e)


@router.post("", response_model=ExperimentDetailResponse, status_code=201)
def create_experiment(
    payload: ExperimentCreate,
    service: ExperimentService = Depends(get_experiment_service)
):
    """Create an experiment together with its A and B variations."""
    try:
        return service.create_experiment(
            name=payload.name,
            description=payload.description,
            variations=[v.model_dump() for v in payload.variations]
        )
    except SplitLabError as e:
        raise to_http_exception(e)


@router.get("/{experiment_id}", response_model=ExperimentDetailResponse)
def get_experiment(
    experiment_id: str,
    service: ExperimentService = Depends(get_experiment_service)
):
    try:
        return service.get_experiment(experiment_id)
    except SplitLabError as e:
        raise to_http_exception(e)


@router.delete("/{experiment_id}", response_model=DeleteResponse)
def delete_experiment(
    experiment_id: str,
    service: ExperimentService = Depends(get_experiment_service)
):
    """Delete an experiment; its variations and views go with it."""
    try:
        service.delete_experiment(experiment_id)
    except SplitLabError as e:
        raise to_http_exception(e)
    return DeleteResponse()


@router.get("/{experiment_id}/variations", response_model=List[VariationResponse])
def list_variations(
    experiment_id: str,
    service: ExperimentService = Depends(get_experiment_service)
):
    try:
        return service.list_variations(experiment_id)
    except SplitLabError as e:
        raise to_http_exception(e)


@router.post("/{experiment_id}/variations", response_model=VariationResponse, status_code=201)
def add_variation(
    experiment_id: str,
    payload: VariationCreate,
    service: ExperimentService = Depends(get_experiment_service)
):
    """
    Add a variation to an experiment.

    Returns 409 if the experiment already has a variation of that type.
    """
    try:
        return service.add_variation(
            experiment_id,
            content=payload.content,
            weight=payload.weight,
            variation_type=payload.type
        )
    except SplitLabError as e:
        raise to_http_exception(e)


@router.put("/{experiment_id}/variations/{variation_id}", response_model=VariationResponse)
def update_variation(
    experiment_id: str,
    variation_id: str,
    payload: VariationCreate,
    service: ExperimentService = Depends(get_experiment_service)
):
    """Replace a variation's content, weight and type."""
    try:
        return service.update_variation(
            experiment_id,
            variation_id,
            content=payload.content,
            weight=payload.weight,
            variation_type=payload.type
        )
    except SplitLabError as e:
        raise to_http_exception(e)
