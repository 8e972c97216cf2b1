"""Runner and word-by-word protocol configuration models.

Attempt bounds, thresholds and delays are policy knobs, not invariants:
every value here can be overridden from TOML or LAMACHINE_* variables.
"""

from typing import Literal

from pydantic import BaseModel, Field

RollbackMode = Literal["word", "sentence"]


class RunnerConfig(BaseModel):
    """Free-streaming runner policy."""

    normal_max_attempts: int = Field(
        default=1, ge=1, description="Attempts allowed in normal difficulty"
    )
    hard_max_attempts: int = Field(
        default=5, ge=1, description="Attempts allowed in hard difficulty"
    )
    early_failure_threshold_chars: int = Field(
        default=140,
        ge=0,
        description="Retry only if the recovered prefix is shorter than this",
    )
    normal_temperature: float = Field(
        default=0.7, ge=0.0, le=2.0, description="First-attempt temperature (normal)"
    )
    hard_temperature: float = Field(
        default=0.3, ge=0.0, le=2.0, description="First-attempt temperature (hard)"
    )
    retry_temperature: float = Field(
        default=0.25, ge=0.0, le=2.0, description="Temperature for retry attempts"
    )
    max_tokens: int = Field(
        default=1024, gt=0, description="Output budget per streamed attempt"
    )
    rollback_mode: RollbackMode = Field(
        default="word", description="Extra rollback applied on hard-mode retries"
    )
    truncate_on_violation: bool = Field(
        default=True,
        description="Replace the visible text with the recovered prefix on violation",
    )
    context_window_chars: int = Field(
        default=120,
        ge=0,
        description="Characters quoted before/after the failure point in retry prompts",
    )


class LengthSequenceConfig(BaseModel):
    """One-word-at-a-time protocol for the snowball constraint."""

    enabled: bool = Field(
        default=True,
        description="Use word-by-word generation for length-sequence constraints",
    )
    max_words: int = Field(default=12, ge=1, description="Words to produce before stopping")
    per_word_retries: int = Field(
        default=7, ge=1, description="Requests allowed per word before failing"
    )
    first_word_letters: int = Field(
        default=2, ge=1, description="Letter count required for the first word"
    )
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=8, gt=0, description="Output budget per word request")
    stop_markers: list[str] = Field(
        default_factory=lambda: ["\n", ".", ","],
        max_length=4,
        description="Stop sequences sent with each word request",
    )
    emit_delay_seconds: float = Field(
        default=0.12, ge=0.0, description="Pause after each accepted word"
    )
