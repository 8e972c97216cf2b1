"""Text normalization and metrics shared by constraints and the runner.

Semantics:
- Diacritics are stripped before comparing letters, so a lipogram in "e"
  also forbids "é" and "ê".
- Apostrophes split words (French elision: "m'avertir" is "m" + "avertir").
- Hyphens join words ("mille-pattes" is one word).
"""

import re
import unicodedata

VOWELS: tuple[str, ...] = ("a", "e", "i", "o", "u", "y")
CONSONANTS: tuple[str, ...] = (
    "b", "c", "d", "f", "g", "h", "j", "k", "l", "m",
    "n", "p", "q", "r", "s", "t", "v", "w", "x", "z",
)
ALPHABET: tuple[str, ...] = tuple(sorted(VOWELS + CONSONANTS))

# Letters/digits runs, hyphenated compounds kept whole
WORD_PATTERN = re.compile(r"[^\W_]+(?:-[^\W_]+)*")

# Plain letters/digits runs, hyphens and apostrophes both separate
TOKEN_PATTERN = re.compile(r"[^\W_]+")

ELISION_MARKS = "'’"
_ELISION_SPLIT = re.compile(f"[{ELISION_MARKS}]")


def normalize_text(text: str) -> str:
    """Strip combining diacritics ("é" -> "e", "à" -> "a")."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def find_words(text: str) -> list[str]:
    """Words as the word-start and length constraints see them."""
    return WORD_PATTERN.findall(text)


def count_letters(word: str) -> int:
    """Letter count of a single word for the length-sequence rule.

    Only alphabetic characters count once diacritics are stripped; hyphens,
    digits and punctuation never do. An elided prefix ("l'" in "l'été") is a
    separate word and is left out.

    >>> count_letters("l'été-là1")
    5
    """
    head = _ELISION_SPLIT.split(word)[-1]
    return sum(1 for ch in normalize_text(head) if ch.isalpha())


def count_words(text: str) -> int:
    """Count words, treating apostrophes and hyphens as separators."""
    return len(TOKEN_PATTERN.findall(text))


def letter_score(text: str) -> int:
    """Count every letter in a text (accented letters included).

    This is the "distance survived" shown to players and used to compare a
    human text with the machine's.
    """
    return sum(1 for ch in text if ch.isalpha())
