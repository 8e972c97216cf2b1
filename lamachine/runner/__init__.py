"""Constraint-enforcing streaming runner.

Runs a text generator under a writing constraint: validates the stream as
it arrives, rolls back to a clean prefix on violation, and retries in hard
mode. Length-sequence constraints use a word-by-word protocol.
"""

from lamachine.runner.cancellation import CancellationToken, GenerationCancelled
from lamachine.runner.length_sequence import (
    LengthSequenceGenerator,
    LengthSequenceResult,
    WordOutcome,
    append_word,
    extract_word,
)
from lamachine.runner.models import (
    Attempt,
    AttemptInfo,
    Difficulty,
    Language,
    RunEvent,
    RunEventKind,
    RunRequest,
    RunState,
    RunStatus,
)
from lamachine.runner.prompt_builder import PromptBuilder, join_continuation
from lamachine.runner.runner import AttemptOutcome, ConstraintRunner, RunListener

__all__ = [
    "Attempt",
    "AttemptInfo",
    "AttemptOutcome",
    "CancellationToken",
    "ConstraintRunner",
    "Difficulty",
    "GenerationCancelled",
    "Language",
    "LengthSequenceGenerator",
    "LengthSequenceResult",
    "PromptBuilder",
    "RunEvent",
    "RunEventKind",
    "RunListener",
    "RunRequest",
    "RunState",
    "RunStatus",
    "WordOutcome",
    "append_word",
    "extract_word",
    "join_continuation",
]
