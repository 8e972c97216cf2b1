"""Mock LLM provider for testing."""

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Iterable
from typing import Any

from lamachine.providers.llm.base import LLMMessage, LLMProvider, LLMResponse


class MockLLMProvider(LLMProvider):
    """Mock LLM provider for testing.

    Returns configurable responses without making actual API calls. A response
    is picked, in order, from the queue of scripted responses, then from the
    responses keyed by the last message content, then the default. Queued
    entries that are exceptions are raised instead of returned, which is how
    tests simulate transport failures.
    """

    def __init__(
        self,
        default_response: str = "Mock response",
        default_model: str = "mock-model",
        responses: dict[str, str] | None = None,
        queued_responses: Iterable[str | Exception] | None = None,
        stream_chunk_size: int = 10,
        stream_delay: float = 0.0,
    ):
        """Initialize mock provider.

        Args:
            default_response: Response to return when nothing else matches
            default_model: Model name to report
            responses: Dict mapping last message content to responses
            queued_responses: Responses consumed one per call
            stream_chunk_size: Number of chars per stream chunk
            stream_delay: Seconds to sleep before each streamed chunk
        """
        self._default_response = default_response
        self._default_model = default_model
        self._responses = responses or {}
        self._queue: deque[str | Exception] = deque(queued_responses or [])
        self._stream_chunk_size = stream_chunk_size
        self._stream_delay = stream_delay
        self._call_history: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    def clear_history(self) -> None:
        self._call_history.clear()

    def set_response(self, trigger: str, response: str) -> None:
        """Set a response for a specific message content."""
        self._responses[trigger] = response

    def queue_response(self, response: str | Exception) -> None:
        """Append a response (or an exception to raise) to the script."""
        self._queue.append(response)

    def _next_content(
        self,
        messages: list[LLMMessage],
        *,
        model: str | None,
        max_tokens: int,
        temperature: float,
        stop_sequences: list[str] | None,
        stream: bool,
        kwargs: dict[str, Any],
    ) -> str:
        self._call_history.append({
            "messages": messages,
            "model": model or self._default_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stop_sequences": stop_sequences,
            "stream": stream,
            "kwargs": kwargs,
        })

        if self._queue:
            scripted = self._queue.popleft()
            if isinstance(scripted, Exception):
                raise scripted
            return scripted

        if messages and messages[-1].content in self._responses:
            return self._responses[messages[-1].content]
        return self._default_response

    async def generate(
        self,
        messages: list[LLMMessage],
        *,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        stop_sequences: list[str] | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate mock response."""
        content = self._next_content(
            messages,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            stop_sequences=stop_sequences,
            stream=False,
            kwargs=kwargs,
        )

        # Truncate to max_tokens (rough approximation)
        token_limit = max_tokens * 4
        if len(content) > token_limit:
            content = content[:token_limit]

        prompt_tokens = sum(len(m.content) // 4 for m in messages)
        return LLMResponse(
            content=content,
            model=model or self._default_model,
            finish_reason="stop",
            usage={
                "prompt_tokens": prompt_tokens,
                "completion_tokens": len(content) // 4,
                "total_tokens": prompt_tokens + len(content) // 4,
            },
        )

    async def generate_stream(
        self,
        messages: list[LLMMessage],
        *,
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        stop_sequences: list[str] | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """Stream mock response in chunks."""
        content = self._next_content(
            messages,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            stop_sequences=stop_sequences,
            stream=True,
            kwargs=kwargs,
        )

        for i in range(0, len(content), self._stream_chunk_size):
            if self._stream_delay:
                await asyncio.sleep(self._stream_delay)
            yield content[i:i + self._stream_chunk_size]
