"""Unit tests for the longest valid prefix search."""

import pytest

from lamachine.constraints import get_constraint
from lamachine.constraints.models import ValidationResult
from lamachine.enforcement.prefix_search import longest_valid_prefix


class CountingConstraint:
    """Forbids a character and counts predicate calls."""

    def __init__(self, forbidden: str) -> None:
        self.forbidden = forbidden
        self.calls = 0

    def validate(self, text: str, param: str = "") -> ValidationResult:
        self.calls += 1
        return ValidationResult(valid=self.forbidden not in text)


class TestLongestValidPrefix:
    """Tests for longest_valid_prefix."""

    def test_empty_text(self) -> None:
        assert longest_valid_prefix("", get_constraint("lipogram"), "e") == 0

    def test_valid_text_returns_full_length(self) -> None:
        constraint = CountingConstraint("z")
        assert longest_valid_prefix("Un blanc parfait", constraint) == 16
        assert constraint.calls == 1

    def test_stops_before_first_forbidden_letter(self) -> None:
        assert longest_valid_prefix("Ceci est un test", get_constraint("lipogram"), "e") == 1

    def test_violation_at_first_character(self) -> None:
        assert longest_valid_prefix("ete", get_constraint("lipogram"), "e") == 0

    @pytest.mark.parametrize(
        "text",
        [
            "Dans le jardin",
            "Un chat noir dort ici, sans bruit. Puis il part.",
            "aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaz",
        ],
    )
    def test_result_is_exact(self, text: str) -> None:
        """text[:k] is valid and text[:k+1] is not."""
        constraint = get_constraint("lipogram")
        for letter in "dniz":
            k = longest_valid_prefix(text, constraint, letter)
            assert constraint.validate(text[:k], letter).valid
            if k < len(text):
                assert not constraint.validate(text[: k + 1], letter).valid

    def test_logarithmic_call_count(self) -> None:
        constraint = CountingConstraint("!")
        text = "a" * 1000 + "!"
        assert longest_valid_prefix(text, constraint) == 1000
        assert constraint.calls <= 12

    def test_non_monotonic_predicate_does_not_raise(self) -> None:
        text = "ABBA rock"
        k = longest_valid_prefix(text, get_constraint("palindrome"))
        assert 0 <= k < len(text)
