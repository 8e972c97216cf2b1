"""Constraint catalog and text metrics."""

from lamachine.constraints.catalog import (
    CONSTRAINTS,
    UnknownConstraintError,
    get_constraint,
    list_constraints,
)
from lamachine.constraints.models import Constraint, ConstraintParameter, ValidationResult
from lamachine.constraints.text import (
    count_letters,
    count_words,
    letter_score,
    normalize_text,
)

__all__ = [
    "CONSTRAINTS",
    "Constraint",
    "ConstraintParameter",
    "UnknownConstraintError",
    "ValidationResult",
    "count_letters",
    "count_words",
    "get_constraint",
    "letter_score",
    "list_constraints",
    "normalize_text",
]
