"""Longest valid prefix search.

Binary search over prefix lengths, so a violation costs O(log n) predicate
calls per check point rather than one per character.

Precondition: the predicate is monotonic along growing prefixes (once a
prefix is invalid every longer prefix is invalid too). For a predicate that
is not, the returned length is still a valid prefix but may not be the
longest one.
"""

from typing import Protocol

from lamachine.constraints.models import ValidationResult


class SupportsValidate(Protocol):
    def validate(self, text: str, param: str = "") -> ValidationResult: ...


def longest_valid_prefix(text: str, constraint: SupportsValidate, param: str = "") -> int:
    """Return the largest k such that `text[:k]` satisfies the constraint.

    The empty prefix is taken as valid. When the whole text is valid its
    length is returned without searching.
    """
    if not text:
        return 0
    if constraint.validate(text, param).valid:
        return len(text)

    lo, hi = 0, len(text) - 1
    while lo < hi:
        # Round up so the search settles on the largest valid length
        mid = (lo + hi + 1) // 2
        if constraint.validate(text[:mid], param).valid:
            lo = mid
        else:
            hi = mid - 1
    return lo
