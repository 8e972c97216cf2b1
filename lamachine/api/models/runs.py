"""Run streaming request and event models."""

from pydantic import BaseModel, Field

from lamachine.config.models.runner import RollbackMode
from lamachine.runner.models import Difficulty, Language, RunState


class RunStreamRequest(BaseModel):
    """Body of POST /v1/runs/stream."""

    constraint_id: str = Field(..., min_length=1, description="Catalog id, e.g. lipogram")
    param: str = Field(default="", description="Constraint parameter, if any")
    difficulty: Difficulty = "normal"
    rollback_mode: RollbackMode | None = None
    language: Language = "fr"
    steering: str | None = Field(default=None, max_length=2000)
    min_chars_to_beat: int | None = Field(default=None, ge=0)
    truncate_on_violation: bool | None = None


class DoneEvent(BaseModel):
    """Final SSE event of a run stream."""

    run_id: str
    state: RunState
