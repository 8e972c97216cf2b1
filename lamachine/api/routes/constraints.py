"""Constraint catalog endpoints."""

from fastapi import APIRouter

from lamachine.api.exceptions import ConstraintNotFoundError
from lamachine.api.models.constraints import ConstraintListResponse, ConstraintResponse
from lamachine.constraints import UnknownConstraintError, get_constraint, list_constraints
from lamachine.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/constraints", response_model=ConstraintListResponse)
async def get_constraints() -> ConstraintListResponse:
    """List every constraint with its parameter specification."""
    return ConstraintListResponse(
        items=[ConstraintResponse.from_constraint(c) for c in list_constraints()]
    )


@router.get("/constraints/{constraint_id}", response_model=ConstraintResponse)
async def get_constraint_by_id(constraint_id: str) -> ConstraintResponse:
    """Describe one constraint.

    Raises:
        ConstraintNotFoundError: If the id is not in the catalog
    """
    try:
        constraint = get_constraint(constraint_id)
    except UnknownConstraintError as e:
        raise ConstraintNotFoundError(f"Unknown constraint: {e.constraint_id}") from e
    return ConstraintResponse.from_constraint(constraint)
