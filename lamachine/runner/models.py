"""Runner models: requests, attempts, observable state and events."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from lamachine.config.models.runner import RollbackMode
from lamachine.constraints.models import Constraint
from lamachine.enforcement.models import ViolationReport

Difficulty = Literal["normal", "hard"]
Language = Literal["fr", "en"]


class RunStatus(str, Enum):
    """Runner lifecycle: ready -> running -> stopped | failed."""

    READY = "ready"
    RUNNING = "running"
    STOPPED = "stopped"  # Clean completion or user stop
    FAILED = "failed"  # Violation not recovered, or transport error


class RunRequest(BaseModel):
    """Everything one run needs."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    constraint: Constraint
    param: str = ""
    difficulty: Difficulty = "normal"
    rollback_mode: RollbackMode | None = Field(
        default=None, description="Hard-retry rollback; runner config when unset"
    )
    language: Language = "fr"
    steering: str | None = Field(default=None, description="Player hint for the generator")
    min_chars_to_beat: int | None = Field(
        default=None, ge=0, description="Versus goal: length the machine must exceed"
    )
    truncate_on_violation: bool | None = Field(
        default=None, description="Runner config when unset"
    )
    run_id: str | None = Field(
        default=None, description="Correlation id bound to the run logs; generated when unset"
    )


class Attempt(BaseModel):
    """One generate-and-validate cycle of a run."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=1)
    max_attempts: int = Field(..., ge=1)
    temperature: float
    base_text: str = ""
    rollback_mode: RollbackMode = "word"
    # Retries back up a whole word or sentence on top of the boundary snap
    extra_rollback: bool = False


class AttemptInfo(BaseModel):
    """Attempt counters exposed to callers."""

    model_config = ConfigDict(frozen=True)

    attempt: int
    max: int
    retrying: bool


class RunState(BaseModel):
    """Immutable snapshot of what a runner shows to its caller."""

    model_config = ConfigDict(frozen=True)

    run_id: str | None = None
    status: RunStatus = RunStatus.READY
    text: str = ""
    last_error: str | None = None
    attempt_info: AttemptInfo | None = None
    violation: ViolationReport | None = None


class RunEventKind(str, Enum):
    TEXT = "text"
    STATUS = "status"
    ATTEMPT = "attempt"
    VIOLATION = "violation"
    ERROR = "error"


class RunEvent(BaseModel):
    """A state change, delivered to listeners in the order it happened."""

    model_config = ConfigDict(frozen=True)

    kind: RunEventKind
    sequence: int = Field(..., ge=0)
    state: RunState
