"""Constraint models.

A Constraint is an immutable rule descriptor plus a pure predicate. The
runner only ever calls `validate`, on arbitrary prefixes of a longer text.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, Field

ParameterKind = Literal["none", "select", "text"]
SelectType = Literal["letter", "vowel", "consonant"]


class ValidationResult(BaseModel):
    """Outcome of a constraint predicate."""

    valid: bool
    reason: str | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class ConstraintParameter(BaseModel):
    """What a constraint needs from the player before it can run."""

    kind: ParameterKind = "none"
    type: SelectType | None = None
    label: str | None = None
    options: tuple[str, ...] = ()
    placeholder: str | None = None

    @property
    def required(self) -> bool:
        return self.kind != "none"


ConstraintCheck = Callable[[str, str], ValidationResult]


@dataclass(frozen=True)
class Constraint:
    """A formal writing rule.

    Attributes:
        id: Stable identifier ("lipogram", "snowball", ...)
        name: Human label
        description: One-line rule statement
        parameter: Parameter specification
        check: Pure predicate (text, param) -> ValidationResult
        word_based: Judges whole words, so a half-typed token may read as a
            false violation; validate only on word boundaries
        streamable: Meaningful on partial text; False for rules such as the
            palindrome that only a finished text can satisfy
        length_sequence: Word letter counts must grow by exactly one
    """

    id: str
    name: str
    description: str
    check: ConstraintCheck = field(repr=False, compare=False)
    parameter: ConstraintParameter = field(default_factory=ConstraintParameter)
    word_based: bool = False
    streamable: bool = True
    length_sequence: bool = False

    def validate(self, text: str, param: str = "") -> ValidationResult:
        return self.check(text, param)

    def has_param(self, param: str | None) -> bool:
        return not self.parameter.required or bool(param)
