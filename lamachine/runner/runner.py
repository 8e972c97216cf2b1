"""Constraint Runner - streams a generator under a formal writing constraint.

Coordinates one run:
1. Stream an attempt from the text generator, validating the growing text
2. On violation, locate the longest valid prefix and roll back to a clean
   boundary
3. In hard mode, retry from the recovered prefix while the failure is early
   enough and attempts remain
4. Settle on `stopped` (clean end or user stop) or `failed`

Length-sequence constraints take the word-by-word protocol instead of free
streaming. All failures below this boundary become state transitions; `run`
never raises for a generator or constraint error.
"""

from collections.abc import Callable
from contextlib import aclosing
from dataclasses import dataclass
from uuid import uuid4

from structlog.contextvars import bound_contextvars

from lamachine.config.models.runner import LengthSequenceConfig, RunnerConfig
from lamachine.constraints.models import Constraint
from lamachine.enforcement.models import ViolationReport
from lamachine.enforcement.prefix_search import longest_valid_prefix
from lamachine.enforcement.rollback import (
    ends_with_boundary,
    find_word_bounds,
    remove_last_sentence,
    remove_last_word,
    snap_to_word_boundary,
)
from lamachine.observability.logging import get_logger
from lamachine.providers.llm.base import LLMProvider
from lamachine.runner.cancellation import CancellationToken, GenerationCancelled
from lamachine.runner.length_sequence import LengthSequenceGenerator
from lamachine.runner.models import (
    Attempt,
    AttemptInfo,
    RunEvent,
    RunEventKind,
    RunRequest,
    RunState,
    RunStatus,
)
from lamachine.runner.prompt_builder import PromptBuilder, join_continuation

logger = get_logger(__name__)

RunListener = Callable[[RunEvent], None]


@dataclass
class AttemptOutcome:
    """How one streamed attempt ended."""

    ok: bool
    full_text: str
    last_valid_prefix: str
    reason: str | None = None


class ConstraintRunner:
    """Run a text generator against a constraint and keep it honest.

    A runner holds at most one run at a time. Calling `run` while a run is in
    progress stops it first. State changes are delivered synchronously and in
    order to subscribed listeners; `state` returns the current snapshot.
    """

    def __init__(
        self,
        provider: LLMProvider,
        config: RunnerConfig | None = None,
        length_sequence_config: LengthSequenceConfig | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            provider: Text generator
            config: Attempt and rollback policy
            length_sequence_config: Word-by-word protocol policy
            prompt_builder: Prompt construction (built from config if omitted)
        """
        self._provider = provider
        self._config = config or RunnerConfig()
        self._length_sequence_config = length_sequence_config or LengthSequenceConfig()
        self._prompts = prompt_builder or PromptBuilder(
            context_window_chars=self._config.context_window_chars
        )
        self._listeners: list[RunListener] = []
        self._sequence = 0
        self._token: CancellationToken | None = None
        self._run_id: str | None = None

        self._status = RunStatus.READY
        self._text = ""
        self._last_error: str | None = None
        self._attempt_info: AttemptInfo | None = None
        self._violation: ViolationReport | None = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return RunState(
            run_id=self._run_id,
            status=self._status,
            text=self._text,
            last_error=self._last_error,
            attempt_info=self._attempt_info,
            violation=self._violation,
        )

    @property
    def status(self) -> RunStatus:
        return self._status

    def subscribe(self, listener: RunListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: RunEventKind) -> None:
        event = RunEvent(kind=kind, sequence=self._sequence, state=self.state)
        self._sequence += 1
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning("listener_failed", kind=kind.value, error=str(e))

    def _set_status(self, status: RunStatus) -> None:
        if status != self._status:
            self._status = status
            self._emit(RunEventKind.STATUS)

    def _set_text(self, text: str) -> None:
        if text != self._text:
            self._text = text
            self._emit(RunEventKind.TEXT)

    def _set_attempt_info(self, info: AttemptInfo | None) -> None:
        if info != self._attempt_info:
            self._attempt_info = info
            self._emit(RunEventKind.ATTEMPT)

    def _set_error(self, error: str | None) -> None:
        if error != self._last_error:
            self._last_error = error
            if error is not None:
                self._emit(RunEventKind.ERROR)

    def _set_violation(self, report: ViolationReport) -> None:
        self._violation = report
        self._emit(RunEventKind.VIOLATION)

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """Cancel the in-flight run, if any. A stopped run never reads as failed."""
        if self._token is not None:
            self._token.cancel()
            self._token = None
        if self._status == RunStatus.RUNNING:
            logger.info("run_stopped", text_length=len(self._text))
            self._set_attempt_info(None)
            self._set_status(RunStatus.STOPPED)

    def reset(self) -> None:
        """Stop, then clear text, error, violation and attempt info."""
        self.stop()
        self._set_text("")
        self._set_error(None)
        self._violation = None
        self._set_attempt_info(None)
        self._set_status(RunStatus.READY)

    async def run(self, request: RunRequest) -> RunState:
        """Run the generator under `request.constraint` until it settles.

        Returns:
            Final state snapshot. After `stop`, that is the stopped state
            (or the state of a newer run if one was started meanwhile).
        """
        self.reset()
        token = CancellationToken()
        self._token = token
        self._run_id = request.run_id or uuid4().hex[:12]
        constraint = request.constraint

        with bound_contextvars(run_id=self._run_id, constraint=constraint.id):
            if not constraint.has_param(request.param):
                logger.warning("run_missing_parameter")
                self._set_error(f'The constraint "{constraint.name}" needs a parameter.')
                self._set_status(RunStatus.FAILED)
                return self.state

            self._set_status(RunStatus.RUNNING)
            logger.info(
                "run_started",
                difficulty=request.difficulty,
                language=request.language,
                protocol="word" if self._uses_word_protocol(constraint) else "stream",
            )

            try:
                if self._uses_word_protocol(constraint):
                    await self._run_length_sequence(request, token)
                else:
                    await self._run_streaming(request, token)
            except GenerationCancelled:
                logger.info("run_cancelled")
                if self._token is token and self._status == RunStatus.RUNNING:
                    self._set_attempt_info(None)
                    self._set_status(RunStatus.STOPPED)
            finally:
                if self._token is token:
                    self._token = None

        return self.state

    def _uses_word_protocol(self, constraint: Constraint) -> bool:
        return constraint.length_sequence and self._length_sequence_config.enabled

    # ------------------------------------------------------------------
    # Free-streaming protocol
    # ------------------------------------------------------------------

    async def _run_streaming(self, request: RunRequest, token: CancellationToken) -> None:
        config = self._config
        hard = request.difficulty == "hard"
        max_attempts = config.hard_max_attempts if hard else config.normal_max_attempts
        rollback_mode = request.rollback_mode or config.rollback_mode
        truncate = (
            config.truncate_on_violation
            if request.truncate_on_violation is None
            else request.truncate_on_violation
        )

        system = self._prompts.build_system_prompt(
            request.constraint,
            request.param,
            request.language,
            difficulty=request.difficulty,
            steering=request.steering,
            min_chars_to_beat=request.min_chars_to_beat,
        )
        attempt = Attempt(
            index=1,
            max_attempts=max_attempts,
            temperature=config.hard_temperature if hard else config.normal_temperature,
            rollback_mode=rollback_mode,
        )
        self._set_attempt_info(AttemptInfo(attempt=1, max=max_attempts, retrying=False))
        prompt = self._prompts.build_initial_prompt(request.language)
        outcome = await self._stream_attempt(request, system, prompt, attempt, token, truncate)

        while not outcome.ok:
            if not hard or attempt.index >= max_attempts:
                break
            if len(outcome.last_valid_prefix) >= config.early_failure_threshold_chars:
                logger.info(
                    "retry_skipped_late_failure",
                    prefix_length=len(outcome.last_valid_prefix),
                    threshold=config.early_failure_threshold_chars,
                )
                break

            attempt = Attempt(
                index=attempt.index + 1,
                max_attempts=max_attempts,
                temperature=config.retry_temperature,
                base_text=outcome.last_valid_prefix,
                rollback_mode=rollback_mode,
                extra_rollback=True,
            )
            self._set_attempt_info(
                AttemptInfo(attempt=attempt.index, max=max_attempts, retrying=True)
            )
            prompt = self._prompts.build_retry_prompt(
                request.language,
                full_text=outcome.full_text,
                last_valid_prefix=outcome.last_valid_prefix,
                reason=outcome.reason or "",
                attempt_index=attempt.index,
                max_attempts=max_attempts,
            )
            outcome = await self._stream_attempt(
                request, system, prompt, attempt, token, truncate
            )

        token.raise_if_cancelled()
        self._set_attempt_info(None)
        if outcome.ok:
            logger.info("run_completed", attempts=attempt.index, text_length=len(self._text))
            self._set_status(RunStatus.STOPPED)
            return

        logger.info("run_failed", attempts=attempt.index, reason=outcome.reason)
        self._set_error(outcome.reason)
        self._set_status(RunStatus.FAILED)

    async def _stream_attempt(
        self,
        request: RunRequest,
        system: str,
        prompt: str,
        attempt: Attempt,
        run_token: CancellationToken,
        truncate: bool,
    ) -> AttemptOutcome:
        """Stream one attempt, validating as chunks arrive.

        The whole attempt runs as a single task under a child of the run
        token, so a stop cancels the read in flight and closes the stream.

        Raises:
            GenerationCancelled: If the run was stopped
        """
        logger.info(
            "runner_attempt_started",
            attempt=attempt.index,
            max_attempts=attempt.max_attempts,
            temperature=attempt.temperature,
            base_length=len(attempt.base_text),
        )
        request_token = run_token.child()
        return await request_token.run(
            self._consume_stream(request, system, prompt, attempt, truncate)
        )

    async def _consume_stream(
        self,
        request: RunRequest,
        system: str,
        prompt: str,
        attempt: Attempt,
        truncate: bool,
    ) -> AttemptOutcome:
        constraint = request.constraint
        acc = attempt.base_text
        pending_join = bool(attempt.base_text)

        try:
            stream = self._provider.generate_stream(
                self._prompts.build_messages(system, prompt),
                max_tokens=self._config.max_tokens,
                temperature=attempt.temperature,
            )
            async with aclosing(stream) as chunks:
                async for chunk in chunks:
                    if pending_join:
                        chunk = join_continuation(attempt.base_text, chunk)
                        pending_join = not chunk
                    acc += chunk
                    self._set_text(acc)

                    if not self._should_validate(constraint, acc):
                        continue
                    result = constraint.validate(acc, request.param)
                    if not result.valid:
                        return self._handle_violation(
                            acc, result.reason, request, attempt, truncate
                        )

            # End of stream is a word boundary for word-based rules
            if constraint.word_based and constraint.streamable and not ends_with_boundary(acc):
                result = constraint.validate(f"{acc} ", request.param)
                if not result.valid:
                    return self._handle_violation(acc, result.reason, request, attempt, truncate)
        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.warning(
                "runner_attempt_transport_failed",
                attempt=attempt.index,
                error=reason,
                error_type=type(e).__name__,
            )
            return AttemptOutcome(
                ok=False,
                full_text=attempt.base_text,
                last_valid_prefix=attempt.base_text,
                reason=reason,
            )

        logger.info("runner_attempt_completed", attempt=attempt.index, text_length=len(acc))
        return AttemptOutcome(ok=True, full_text=acc, last_valid_prefix=acc)

    @staticmethod
    def _should_validate(constraint: Constraint, text: str) -> bool:
        if not constraint.streamable:
            return False
        if constraint.word_based:
            return not text or ends_with_boundary(text)
        return True

    def _handle_violation(
        self,
        text: str,
        reason: str | None,
        request: RunRequest,
        attempt: Attempt,
        truncate: bool,
    ) -> AttemptOutcome:
        reason = reason or "Constraint violation"
        cut = longest_valid_prefix(text, request.constraint, request.param)
        prefix = snap_to_word_boundary(text[:cut])
        if attempt.extra_rollback:
            if attempt.rollback_mode == "sentence":
                prefix = remove_last_sentence(prefix)
            else:
                prefix = remove_last_word(prefix)

        start, end = find_word_bounds(text, cut)
        report = ViolationReport(
            full_text=text,
            last_valid_prefix=prefix,
            reason=reason,
            highlight_start=start,
            highlight_end=end,
            attempt=attempt.index,
        )
        logger.info(
            "violation_detected",
            attempt=attempt.index,
            reason=reason,
            valid_length=cut,
            recovered_length=len(prefix),
            text_length=len(text),
        )
        self._set_violation(report)
        self._set_text(prefix if truncate else text)
        return AttemptOutcome(
            ok=False, full_text=text, last_valid_prefix=prefix, reason=reason
        )

    # ------------------------------------------------------------------
    # Word-by-word protocol
    # ------------------------------------------------------------------

    async def _run_length_sequence(self, request: RunRequest, token: CancellationToken) -> None:
        self._set_attempt_info(AttemptInfo(attempt=1, max=1, retrying=False))
        generator = LengthSequenceGenerator(
            self._provider, self._length_sequence_config, self._prompts
        )

        try:
            result = await generator.generate(
                request.constraint, request.language, token, on_text=self._set_text
            )
        except GenerationCancelled:
            raise
        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.warning("word_request_failed", error=reason, error_type=type(e).__name__)
            self._set_attempt_info(None)
            self._set_error(reason)
            self._set_status(RunStatus.FAILED)
            return

        self._set_attempt_info(None)
        if result.violation is not None:
            self._set_violation(result.violation)
            self._set_error(result.error)
            self._set_status(RunStatus.FAILED)
            return

        logger.info("run_completed", words=len(result.text.split()), text_length=len(result.text))
        self._set_status(RunStatus.STOPPED)
