"""One-word-at-a-time generation for length-sequence constraints.

Free streaming rarely survives a rule where every word must be exactly one
letter longer than the previous one. Here each word is requested on its own
with a short output budget, checked locally against the required letter
count, and requested again (listing the refused candidates) until it fits or
the per-word budget runs out.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from lamachine.config.models.runner import LengthSequenceConfig
from lamachine.constraints.models import Constraint
from lamachine.constraints.text import ELISION_MARKS, TOKEN_PATTERN, count_letters
from lamachine.enforcement.models import ViolationReport
from lamachine.observability.logging import get_logger
from lamachine.providers.llm.base import LLMProvider
from lamachine.runner.cancellation import CancellationToken
from lamachine.runner.models import Language
from lamachine.runner.prompt_builder import PromptBuilder

logger = get_logger(__name__)


@dataclass
class WordOutcome:
    """Result of asking for one word."""

    word: str | None
    rejected: list[str] = field(default_factory=list)
    requests: int = 0


@dataclass
class LengthSequenceResult:
    """Result of a whole word-by-word run."""

    text: str
    completed: bool
    violation: ViolationReport | None = None
    error: str | None = None


def extract_word(raw: str) -> str:
    """Keep the first letters/digits run of a raw single-word response."""
    match = TOKEN_PATTERN.search(raw)
    return match.group(0) if match else ""


def append_word(text: str, word: str) -> str:
    if not text or text[-1] in ELISION_MARKS or text[-1].isspace():
        return f"{text}{word}"
    return f"{text} {word}"


class LengthSequenceGenerator:
    """Builds a length-sequence text one accepted word at a time."""

    def __init__(
        self,
        provider: LLMProvider,
        config: LengthSequenceConfig | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self._provider = provider
        self._config = config or LengthSequenceConfig()
        self._prompts = prompt_builder or PromptBuilder()

    def target_for(self, last_letter_count: int | None) -> int:
        """Letters required for the next word."""
        if last_letter_count is None:
            return self._config.first_word_letters
        return last_letter_count + 1

    async def generate(
        self,
        constraint: Constraint,
        language: Language,
        token: CancellationToken,
        on_text: Callable[[str], None],
    ) -> LengthSequenceResult:
        """Produce up to `max_words` words, reporting the text after each.

        Args:
            constraint: The length-sequence constraint being played
            language: Output language
            token: Run token; cancelling it stops between or during requests
            on_text: Called with the accumulated text after each accepted word

        Returns:
            The accumulated text, and a violation when a word slot could not
            be filled within the per-word budget

        Raises:
            GenerationCancelled: If the token fires
            ProviderError: If a word request fails in transport
        """
        system = self._prompts.build_word_system_prompt(constraint, language)
        text = ""
        last_count: int | None = None

        for index in range(self._config.max_words):
            token.raise_if_cancelled()
            target = self.target_for(last_count)
            outcome = await self.next_word(system, language, text, target, token)

            if outcome.word is None:
                candidate = outcome.rejected[-1] if outcome.rejected else ""
                return self._failure(text, candidate, target)

            text = append_word(text, outcome.word)
            last_count = target
            on_text(text)
            logger.debug(
                "word_accepted",
                index=index,
                word=outcome.word,
                letters=target,
                requests=outcome.requests,
            )

            if self._config.emit_delay_seconds > 0:
                await token.run(asyncio.sleep(self._config.emit_delay_seconds))

        return LengthSequenceResult(text=text, completed=True)

    async def next_word(
        self,
        system: str,
        language: Language,
        text: str,
        target_letters: int,
        token: CancellationToken,
    ) -> WordOutcome:
        """Request words until one has exactly `target_letters` letters."""
        rejected: list[str] = []

        for request_index in range(1, self._config.per_word_retries + 1):
            prompt = self._prompts.build_next_word_prompt(
                language, text, target_letters, rejected
            )
            messages = self._prompts.build_messages(system, prompt)
            request_token = token.child()
            response = await request_token.run(
                self._provider.generate(
                    messages,
                    max_tokens=self._config.max_tokens,
                    temperature=self._config.temperature,
                    stop_sequences=list(self._config.stop_markers),
                )
            )

            candidate = extract_word(response.content)
            if candidate and count_letters(candidate) == target_letters:
                return WordOutcome(word=candidate, rejected=rejected, requests=request_index)

            logger.info(
                "word_rejected",
                candidate=candidate,
                letters=count_letters(candidate) if candidate else 0,
                target=target_letters,
                request=request_index,
            )
            if candidate:
                rejected.append(candidate)

        return WordOutcome(
            word=None, rejected=rejected, requests=self._config.per_word_retries
        )

    def _failure(self, text: str, candidate: str, target: int) -> LengthSequenceResult:
        reason = f"Could not find a word of exactly {target} letters to continue the sequence"
        full_text = append_word(text, candidate) if candidate else text
        start = len(full_text) - len(candidate)
        violation = ViolationReport(
            full_text=full_text,
            last_valid_prefix=text,
            reason=reason,
            highlight_start=start,
            highlight_end=len(full_text),
        )
        logger.warning(
            "word_budget_exhausted",
            target=target,
            candidate=candidate,
            text_length=len(text),
        )
        return LengthSequenceResult(text=text, completed=False, violation=violation, error=reason)
