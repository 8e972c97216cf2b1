"""Constraint enforcement on streaming text.

Contains the longest-valid-prefix search, the boundary rollback toolkit and
the violation report emitted by the runner.
"""

from lamachine.enforcement.models import ViolationReport
from lamachine.enforcement.prefix_search import longest_valid_prefix
from lamachine.enforcement.rollback import (
    ends_with_boundary,
    find_word_bounds,
    remove_last_sentence,
    remove_last_word,
    snap_to_word_boundary,
)

__all__ = [
    "ViolationReport",
    "ends_with_boundary",
    "find_word_bounds",
    "longest_valid_prefix",
    "remove_last_sentence",
    "remove_last_word",
    "snap_to_word_boundary",
]
