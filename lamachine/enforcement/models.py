"""Enforcement models."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ViolationReport(BaseModel):
    """What the runner saw when a constraint broke.

    The highlight span `[highlight_start, highlight_end)` indexes into
    `full_text` and covers the offending token.
    """

    model_config = ConfigDict(frozen=True)

    full_text: str = Field(..., description="Text at the moment of failure")
    last_valid_prefix: str = Field(..., description="Clean recovered prefix")
    reason: str = Field(..., description="Human-readable failure reason")
    highlight_start: int = Field(..., ge=0)
    highlight_end: int = Field(..., ge=0)
    attempt: int = Field(default=1, ge=1, description="Attempt that produced the failure")

    @model_validator(mode="after")
    def _check_span(self) -> "ViolationReport":
        if not self.highlight_start <= self.highlight_end <= len(self.full_text):
            raise ValueError("highlight span must lie within full_text")
        return self
