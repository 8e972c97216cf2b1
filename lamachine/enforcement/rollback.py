"""Boundary rollback toolkit.

Pure string transforms that turn a raw "last valid" cut into a prefix a
generator can continue cleanly: no half word at the end, and exactly one
trailing space unless the prefix ends on an elision mark ("L'" + "air").
"""

import re

BOUNDARY_CHARS = frozenset(" \t\n\r\f\v.,;:!?-\"'’")
QUOTE_CHARS = frozenset("\"'’")
SENTENCE_TERMINATORS = frozenset(".!?…")

_WORD_CHAR = re.compile(r"[^\W_]")


def is_boundary(ch: str) -> bool:
    return ch in BOUNDARY_CHARS or ch.isspace()


def ends_with_boundary(text: str) -> bool:
    """Whether a word-based check can run without seeing a half-typed token."""
    return bool(text) and is_boundary(text[-1])


def _normalize_tail(head: str) -> str:
    if not head.strip():
        return ""
    if head[-1] in QUOTE_CHARS or head[-1].isspace():
        return head
    return f"{head} "


def snap_to_word_boundary(prefix: str) -> str:
    """Drop a trailing partial word, then make the prefix appendable.

    "Dans le jar" -> "Dans le ". A prefix with no boundary at all is a single
    partial word and collapses to "".
    """
    cut = None
    for i in range(len(prefix) - 1, -1, -1):
        if is_boundary(prefix[i]):
            cut = i + 1
            break
    if cut is None:
        return ""
    return _normalize_tail(prefix[:cut])


def remove_last_word(prefix: str) -> str:
    """Remove the last real word so a retry does not re-derive it.

    Words of two characters or fewer are kept (articles and prepositions such
    as "au" or "le"); only the boundary is normalized then.
    """
    end = len(prefix)
    while end > 0 and is_boundary(prefix[end - 1]):
        end -= 1
    if end == 0:
        return ""

    start = end
    while start > 0 and _WORD_CHAR.match(prefix[start - 1]):
        start -= 1
    word = prefix[start:end]
    if not word:
        return ""

    if len(word) <= 2:
        return _normalize_tail(prefix)

    return _normalize_tail(prefix[:start])


def remove_last_sentence(prefix: str) -> str:
    """Remove the last sentence, a coarser rollback than remove_last_word.

    Trailing terminators are stepped over first so that a prefix already
    ending on "." loses its last sentence rather than nothing. Newlines count
    as terminators when searching backward.
    """
    end = len(prefix)
    while end > 0 and prefix[end - 1].isspace():
        end -= 1
    while end > 0 and prefix[end - 1] in SENTENCE_TERMINATORS:
        end -= 1
    while end > 0 and prefix[end - 1].isspace():
        end -= 1
    if end == 0:
        return ""

    cut = None
    for i in range(end - 1, -1, -1):
        if prefix[i] == "\n" or prefix[i] in SENTENCE_TERMINATORS:
            cut = i + 1
            break
    if cut is None:
        return ""
    return _normalize_tail(prefix[:cut])


def find_word_bounds(text: str, index: int) -> tuple[int, int]:
    """Return `(start, end)` of the token enclosing `index`.

    From a boundary character the search moves right to the next token; at
    the end of the text it falls back left. Used for violation highlights.
    """
    n = len(text)
    if n == 0:
        return 0, 0
    i = min(max(index, 0), n - 1)

    pivot = i
    while pivot < n and is_boundary(text[pivot]):
        pivot += 1
    if pivot >= n:
        pivot = i
        while pivot > 0 and is_boundary(text[pivot]):
            pivot -= 1

    start = pivot
    while start > 0 and not is_boundary(text[start - 1]):
        start -= 1
    end = pivot
    while end < n and not is_boundary(text[end]):
        end += 1
    return start, end
