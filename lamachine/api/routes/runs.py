"""Run streaming endpoint.

A run is streamed as Server-Sent Events: one event per runner state change
(`text`, `status`, `attempt`, `violation`, `error`) and a final `done` event
carrying the settled state. A client that disconnects stops its run.
"""

import asyncio
from collections.abc import AsyncGenerator
from uuid import uuid4

from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse

from lamachine.api.dependencies import LLMProviderDep, SettingsDep
from lamachine.api.exceptions import ConstraintNotFoundError
from lamachine.api.models.runs import DoneEvent, RunStreamRequest
from lamachine.constraints import UnknownConstraintError, get_constraint
from lamachine.observability.logging import get_logger
from lamachine.runner import ConstraintRunner, RunEvent, RunRequest

logger = get_logger(__name__)

router = APIRouter()


@router.post("/runs/stream")
async def stream_run(
    body: RunStreamRequest,
    provider: LLMProviderDep,
    settings: SettingsDep,
) -> EventSourceResponse:
    """Start a run and stream its events.

    Args:
        body: Constraint, parameter and run options
        provider: Text generator
        settings: Application settings (runner policy)

    Returns:
        EventSourceResponse with one event per state change, then `done`

    Raises:
        ConstraintNotFoundError: If the constraint id is not in the catalog
    """
    try:
        constraint = get_constraint(body.constraint_id)
    except UnknownConstraintError as e:
        raise ConstraintNotFoundError(f"Unknown constraint: {e.constraint_id}") from e

    run_id = uuid4().hex[:12]
    run_request = RunRequest(
        constraint=constraint,
        param=body.param,
        difficulty=body.difficulty,
        rollback_mode=body.rollback_mode,
        language=body.language,
        steering=body.steering,
        min_chars_to_beat=body.min_chars_to_beat,
        truncate_on_violation=body.truncate_on_violation,
        run_id=run_id,
    )
    runner = ConstraintRunner(provider, settings.runner, settings.length_sequence)

    logger.info(
        "run_stream_request_received",
        run_id=run_id,
        constraint=constraint.id,
        difficulty=body.difficulty,
    )

    async def event_generator() -> AsyncGenerator[dict[str, str], None]:
        """Relay runner events until the run settles."""
        queue: asyncio.Queue[RunEvent | None] = asyncio.Queue()
        runner.subscribe(queue.put_nowait)
        task = asyncio.create_task(runner.run(run_request))
        task.add_done_callback(lambda _: queue.put_nowait(None))

        try:
            while (event := await queue.get()) is not None:
                yield {"event": event.kind.value, "data": event.model_dump_json()}

            state = await task
            done = DoneEvent(run_id=run_id, state=state)
            yield {"event": "done", "data": done.model_dump_json()}
            logger.info("run_stream_completed", run_id=run_id, status=state.status.value)
        finally:
            if not task.done():
                logger.info("run_stream_client_disconnected", run_id=run_id)
                runner.stop()
                await task

    return EventSourceResponse(event_generator())
