"""LLM Executor - routes generation requests to Agno model classes.

The executor handles:
- Model selection and API routing based on model string prefix
- Sampling parameters (temperature, output budget, stop sequences)
- Fallback chain for single responses (Agno doesn't have this natively)
- Streaming on the primary model for the free-streaming protocol
- Observability (latency, request tracking)

Model string formats:
- openrouter/{provider}/{model} -> Agno OpenRouter
- anthropic/{model} -> Agno Claude
- openai/{model} -> Agno OpenAIChat
- groq/{model} -> Agno Groq
- mock/{name} -> canned local response, no network
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from lamachine.observability.logging import get_logger
from lamachine.providers.llm.base import (
    AuthenticationError,
    ContentFilterError,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    ModelError,
    ProviderError,
    RateLimitError,
    TokenUsage,
)

if TYPE_CHECKING:
    from agno.agent import Agent

    from lamachine.config.models.providers import LLMProviderConfig

logger = get_logger(__name__)


def classify_provider_error(error: Exception) -> ProviderError:
    """Map an SDK failure surfaced by Agno onto the provider error hierarchy.

    Agno re-raises the provider SDK exceptions, whose types differ per
    vendor, so the message is inspected instead.
    """
    message = str(error).lower()
    if ("rate" in message and "limit" in message) or "429" in message:
        return RateLimitError(f"Rate limited: {error}")
    if any(marker in message for marker in ("401", "403", "api key", "authentication")):
        return AuthenticationError(f"Authentication failed: {error}")
    if "content" in message and ("filter" in message or "policy" in message):
        return ContentFilterError(f"Content blocked: {error}")
    if "model" in message and ("not found" in message or "does not exist" in message):
        return ModelError(f"Model unavailable: {error}")
    return ProviderError(f"Agno execution failed: {error}")


class LLMExecutor(LLMProvider):
    """Executes LLM calls through Agno.

    Agno configures sampling at model construction time, so a fresh model and
    agent are built per request from the requested sampling parameters. This
    also keeps the system directive of one run from leaking into another.

    Example:
        executor = LLMExecutor(model="openai/gpt-4o-mini")
        response = await executor.generate(
            messages=[LLMMessage(role="user", content="Hello")],
            temperature=0.2,
            stop_sequences=["\\n"],
        )
    """

    def __init__(
        self,
        model: str,
        fallback_models: list[str] | None = None,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the executor.

        Args:
            model: Primary model string (e.g., 'openai/gpt-4o-mini')
            fallback_models: Models to try if primary fails (single responses only)
            timeout: Request timeout in seconds
        """
        self._model = model
        self._fallback_models = fallback_models or []
        self._timeout = timeout

    @property
    def provider_name(self) -> str:
        return "agno"

    @property
    def model(self) -> str:
        """Primary model for this executor."""
        return self._model

    async def generate(
        self,
        messages: list[LLMMessage],
        *,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        stop_sequences: list[str] | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate text from messages.

        Uses primary model, falls back to fallback_models on failure.
        """
        models_to_try = [self._model] + self._fallback_models
        last_error: Exception | None = None

        for model in models_to_try:
            try:
                return await self._generate_with_model(
                    model=model,
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    stop_sequences=stop_sequences,
                )

            except RateLimitError as e:
                logger.warning("executor_rate_limited", model=model, error=str(e))
                last_error = e
                continue

            except ProviderError as e:
                logger.warning("executor_provider_error", model=model, error=str(e))
                last_error = e
                continue

        raise ProviderError(
            f"All models failed. Tried: {models_to_try}. Last error: {last_error}"
        )

    def generate_stream(
        self,
        messages: list[LLMMessage],
        *,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        stop_sequences: list[str] | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[str]:
        """Stream generated text.

        Note: Streaming doesn't support fallback - uses primary model only.
        """
        return self._generate_stream_impl(
            model=self._model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            stop_sequences=stop_sequences,
        )

    # ========================================================================
    # Internal: Agno-based execution
    # ========================================================================

    def _create_agent(
        self,
        model: str,
        system_prompt: str | None,
        max_tokens: int,
        temperature: float,
        stop_sequences: list[str] | None,
    ) -> Agent:
        from agno.agent import Agent

        agno_model = self._create_agno_model(model, max_tokens, temperature, stop_sequences)
        return Agent(
            model=agno_model,
            instructions=[system_prompt] if system_prompt else None,
            markdown=False,
        )

    def _create_agno_model(
        self,
        model: str,
        max_tokens: int,
        temperature: float,
        stop_sequences: list[str] | None,
    ) -> Any:
        """Create Agno model class from model string with sampling applied."""
        provider_type, api_model = self._parse_model(model)
        sampling: dict[str, Any] = {"temperature": temperature, "max_tokens": max_tokens}

        if provider_type == "anthropic":
            from agno.models.anthropic import Claude

            if stop_sequences:
                sampling["stop_sequences"] = stop_sequences
            return Claude(id=api_model, **sampling)

        if stop_sequences:
            sampling["stop"] = stop_sequences

        if provider_type == "openrouter":
            from agno.models.openrouter import OpenRouter

            return OpenRouter(id=api_model, timeout=self._timeout, **sampling)

        elif provider_type == "openai":
            from agno.models.openai import OpenAIChat

            return OpenAIChat(id=api_model, timeout=self._timeout, **sampling)

        elif provider_type == "groq":
            from agno.models.groq import Groq

            return Groq(id=api_model, timeout=self._timeout, **sampling)

        from agno.models.openrouter import OpenRouter

        logger.warning(
            "unknown_provider_defaulting_to_openrouter",
            model=model,
            provider_type=provider_type,
        )
        return OpenRouter(id=model, timeout=self._timeout, **sampling)

    def _format_messages_for_agno(self, messages: list[LLMMessage]) -> str:
        """Agno agents take a string input; system messages become instructions."""
        user_messages = [m for m in messages if m.role != "system"]

        if len(user_messages) == 1:
            return user_messages[0].content

        parts = []
        for msg in user_messages:
            if msg.role == "user":
                parts.append(f"User: {msg.content}")
            elif msg.role == "assistant":
                parts.append(f"Assistant: {msg.content}")
        return "\n\n".join(parts)

    def _get_system_prompt(self, messages: list[LLMMessage]) -> str | None:
        for msg in messages:
            if msg.role == "system":
                return msg.content
        return None

    async def _generate_with_model(
        self,
        model: str,
        messages: list[LLMMessage],
        max_tokens: int,
        temperature: float,
        stop_sequences: list[str] | None,
    ) -> LLMResponse:
        provider_type, _ = self._parse_model(model)

        if provider_type == "mock":
            return self._mock_response(model)

        agent = self._create_agent(
            model,
            self._get_system_prompt(messages),
            max_tokens,
            temperature,
            stop_sequences,
        )
        input_text = self._format_messages_for_agno(messages)

        start_time = time.perf_counter()

        try:
            run_response = await agent.arun(input_text)
            content = run_response.content if run_response.content else ""

        except Exception as e:
            raise classify_provider_error(e) from e

        latency_ms = (time.perf_counter() - start_time) * 1000

        logger.debug(
            "executor_generate_complete",
            model=model,
            latency_ms=round(latency_ms, 2),
            content_length=len(content),
        )

        return LLMResponse(
            content=str(content),
            model=model,
            finish_reason="stop",
            metadata={
                "latency_ms": latency_ms,
                "model_requested": model,
                "provider": provider_type,
            },
        )

    async def _generate_stream_impl(
        self,
        model: str,
        messages: list[LLMMessage],
        max_tokens: int,
        temperature: float,
        stop_sequences: list[str] | None,
    ) -> AsyncIterator[str]:
        provider_type, _ = self._parse_model(model)

        if provider_type == "mock":
            yield self._mock_response(model).content
            return

        agent = self._create_agent(
            model,
            self._get_system_prompt(messages),
            max_tokens,
            temperature,
            stop_sequences,
        )
        input_text = self._format_messages_for_agno(messages)

        yielded = False
        try:
            async for chunk in agent.arun(input_text, stream=True):
                content = getattr(chunk, "content", None)
                if isinstance(content, str) and content:
                    yielded = True
                    yield content
        except Exception as e:
            logger.error("streaming_failed", model=model, error=str(e), yielded=yielded)
            if yielded:
                raise ProviderError(f"Stream interrupted: {e}") from e
            # Nothing reached the caller yet, so a single response is equivalent
            response = await self._generate_with_model(
                model, messages, max_tokens, temperature, stop_sequences
            )
            yield response.content

    def _mock_response(self, model: str) -> LLMResponse:
        return LLMResponse(
            content=f"Mock response for {model}",
            model=model,
            finish_reason="stop",
            usage=TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        )

    def _parse_model(self, model: str) -> tuple[str, str]:
        """Parse model string into (provider_type, api_model).

        Examples:
            "openrouter/anthropic/claude-3-haiku" -> ("openrouter", "anthropic/claude-3-haiku")
            "anthropic/claude-3-haiku" -> ("anthropic", "claude-3-haiku")
            "openai/gpt-4o-mini" -> ("openai", "gpt-4o-mini")
            "mock/test" -> ("mock", "test")
        """
        parts = model.split("/")

        if len(parts) >= 3 and parts[0] == "openrouter":
            return "openrouter", "/".join(parts[1:])
        elif len(parts) >= 2:
            return parts[0], "/".join(parts[1:])
        else:
            return "mock", model


def create_executor(config: LLMProviderConfig) -> LLMExecutor:
    """Create an LLMExecutor from provider configuration."""
    return LLMExecutor(
        model=config.model,
        fallback_models=config.fallback_models,
        timeout=config.timeout,
    )
