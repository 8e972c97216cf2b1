"""Built-in constraint catalog.

Predicates are pure and, except for the palindrome, monotonic along growing
prefixes: once a prefix breaks the rule, appending text never repairs it.
The snowball rule ignores an unterminated trailing word so that it stays
monotonic while a word is still being typed.
"""

import re

from lamachine.constraints.models import Constraint, ConstraintParameter, ValidationResult
from lamachine.constraints.text import (
    ALPHABET,
    CONSONANTS,
    VOWELS,
    count_letters,
    find_words,
    normalize_text,
)

_TRAILING_BOUNDARY = re.compile(r"[\s.,;:!?\"'’]$")
_NON_ALNUM = re.compile(r"[^a-z0-9]")

_VALID = ValidationResult(valid=True)


class UnknownConstraintError(KeyError):
    """Raised when a constraint id is not in the catalog."""

    def __init__(self, constraint_id: str) -> None:
        self.constraint_id = constraint_id
        super().__init__(f"Unknown constraint: {constraint_id}")


def _lipogram(text: str, param: str) -> ValidationResult:
    forbidden = param.lower()
    if forbidden in normalize_text(text.lower()):
        return ValidationResult(valid=False, reason=f'Forbidden letter detected: "{forbidden}"')
    return _VALID


def _monovocalism(text: str, param: str) -> ValidationResult:
    allowed = param.lower()
    others = {v for v in VOWELS if v != allowed}
    for ch in normalize_text(text.lower()):
        if ch in others:
            return ValidationResult(valid=False, reason=f'Vowel not allowed: "{ch}"')
    return _VALID


def _starts_with(letter_kind: str):
    def check(text: str, param: str) -> ValidationResult:
        initial = param.lower()
        for word in find_words(text):
            if not normalize_text(word.lower()).startswith(initial):
                return ValidationResult(
                    valid=False,
                    reason=f'The word "{word}" does not start with the {letter_kind} "{initial}"',
                )
        return _VALID

    return check


def _palindrome(text: str, _param: str) -> ValidationResult:
    normalized = _NON_ALNUM.sub("", normalize_text(text.lower()))
    if not normalized or normalized != normalized[::-1]:
        return ValidationResult(valid=False, reason="The text is not a perfect palindrome.")
    return _VALID


def _snowball(text: str, _param: str) -> ValidationResult:
    words = find_words(text)
    if len(words) <= 1:
        return _VALID

    to_check = words if _TRAILING_BOUNDARY.search(text) else words[:-1]

    previous: int | None = None
    for word in to_check:
        length = count_letters(word)
        if length == 0:
            continue
        if previous is not None and length != previous + 1:
            return ValidationResult(
                valid=False,
                reason=(
                    f'The word "{word}" must have {previous + 1} letters '
                    f"(it has {length})."
                ),
                meta={"expected": previous + 1, "actual": length},
            )
        previous = length
    return _VALID


def _beau_present(text: str, param: str) -> ValidationResult:
    allowed = {ch for ch in normalize_text(param.lower()) if ch in ALPHABET}
    if not allowed:
        # Nothing usable in the reference yet; do not block
        return _VALID

    for ch in normalize_text(text.lower()):
        if ch in ALPHABET and ch not in allowed:
            return ValidationResult(
                valid=False,
                reason=f'The letter "{ch}" does not appear in "{param}".',
            )
    return _VALID


def _pangram(text: str, _param: str) -> ValidationResult:
    used = {ch for ch in normalize_text(text.lower()) if ch in ALPHABET}
    missing = [letter for letter in ALPHABET if letter not in used]
    # Informational only: never blocks
    return ValidationResult(valid=True, meta={"missing_letters": missing})


CONSTRAINTS: tuple[Constraint, ...] = (
    Constraint(
        id="lipogram",
        name="Lipogram",
        description="A given letter is forbidden.",
        check=_lipogram,
        parameter=ConstraintParameter(
            kind="select", type="letter", label="Forbidden letter", options=ALPHABET
        ),
    ),
    Constraint(
        id="monovocalism",
        name="Monovocalism",
        description="Only one vowel is allowed.",
        check=_monovocalism,
        parameter=ConstraintParameter(
            kind="select", type="vowel", label="Allowed vowel", options=VOWELS
        ),
    ),
    Constraint(
        id="tautogram",
        name="Tautogram",
        description="Every word starts with the same letter.",
        check=_starts_with("letter"),
        parameter=ConstraintParameter(
            kind="select", type="letter", label="Initial letter", options=ALPHABET
        ),
        word_based=True,
    ),
    Constraint(
        id="alliteration",
        name="Systematic alliteration",
        description="Every word starts with the same consonant.",
        check=_starts_with("consonant"),
        parameter=ConstraintParameter(
            kind="select", type="consonant", label="Initial consonant", options=CONSONANTS
        ),
        word_based=True,
    ),
    Constraint(
        id="palindrome",
        name="Palindrome",
        description="The text reads the same left to right and right to left.",
        check=_palindrome,
        streamable=False,
    ),
    Constraint(
        id="snowball",
        name="Snowball",
        description="Each word is one letter longer than the previous one.",
        check=_snowball,
        word_based=True,
        length_sequence=True,
    ),
    Constraint(
        id="beau-present",
        name="Beau présent",
        description="Only letters found in a given name or phrase may be used.",
        check=_beau_present,
        parameter=ConstraintParameter(
            kind="text", label="Reference name or phrase", placeholder="e.g. Georges Perec"
        ),
    ),
    Constraint(
        id="pangram",
        name="Pangram",
        description="Every letter of the alphabet is used at least once.",
        check=_pangram,
    ),
)

_BY_ID = {constraint.id: constraint for constraint in CONSTRAINTS}


def get_constraint(constraint_id: str) -> Constraint:
    """Look up a catalog constraint.

    Raises:
        UnknownConstraintError: If no constraint has this id
    """
    try:
        return _BY_ID[constraint_id]
    except KeyError:
        raise UnknownConstraintError(constraint_id) from None


def list_constraints() -> list[Constraint]:
    return list(CONSTRAINTS)
