"""Tests for the Agno-backed LLM executor."""

from collections.abc import AsyncIterator
from typing import Any

import pytest

from lamachine.config.models.providers import LLMProviderConfig
from lamachine.providers.llm import (
    AuthenticationError,
    ContentFilterError,
    LLMExecutor,
    LLMMessage,
    LLMResponse,
    ModelError,
    ProviderError,
    RateLimitError,
    create_executor,
)
from lamachine.providers.llm.executor import classify_provider_error

MESSAGES = [
    LLMMessage(role="system", content="Be brief."),
    LLMMessage(role="user", content="Un mot ?"),
]


class _FailingStreamAgent:
    """Agent double whose stream breaks after an optional first chunk."""

    def __init__(self, chunks: list[str]) -> None:
        self._chunks = chunks

    def arun(self, _input: str, stream: bool = False) -> AsyncIterator[Any]:
        async def _stream() -> AsyncIterator[Any]:
            for chunk in self._chunks:
                yield type("Chunk", (), {"content": chunk})()
            raise RuntimeError("connection reset")

        return _stream()


class _RaisingAgent:
    """Agent double whose single response fails."""

    def __init__(self, error: Exception) -> None:
        self._error = error

    async def arun(self, _input: str, stream: bool = False) -> Any:
        raise self._error


class TestModelParsing:
    """Tests for model string routing."""

    @pytest.mark.parametrize(
        ("model", "expected"),
        [
            ("openrouter/anthropic/claude-3-haiku", ("openrouter", "anthropic/claude-3-haiku")),
            ("anthropic/claude-3-haiku", ("anthropic", "claude-3-haiku")),
            ("openai/gpt-4o-mini", ("openai", "gpt-4o-mini")),
            ("groq/llama-3.1-8b-instant", ("groq", "llama-3.1-8b-instant")),
            ("local", ("mock", "local")),
        ],
    )
    def test_parse_model(self, model, expected):
        assert LLMExecutor(model=model)._parse_model(model) == expected


class TestMessageFormatting:
    """Tests for message conversion."""

    def test_single_user_message_passed_through(self):
        executor = LLMExecutor(model="mock/test")
        assert executor._format_messages_for_agno(MESSAGES) == "Un mot ?"
        assert executor._get_system_prompt(MESSAGES) == "Be brief."

    def test_conversation_flattened(self):
        executor = LLMExecutor(model="mock/test")
        messages = [
            LLMMessage(role="user", content="Bonjour"),
            LLMMessage(role="assistant", content="Salut"),
        ]
        assert executor._format_messages_for_agno(messages) == "User: Bonjour\n\nAssistant: Salut"


class TestGenerate:
    """Tests for single responses."""

    @pytest.mark.asyncio
    async def test_mock_model_needs_no_network(self):
        response = await LLMExecutor(model="mock/test").generate(MESSAGES)
        assert response.content == "Mock response for mock/test"

    @pytest.mark.asyncio
    async def test_falls_back_on_provider_error(self, monkeypatch):
        executor = LLMExecutor(model="openai/a", fallback_models=["openai/b"])
        tried: list[str] = []

        async def fake_generate(model, **kwargs):
            tried.append(model)
            if model == "openai/a":
                raise RateLimitError("limited")
            return LLMResponse(content="ok", model=model)

        monkeypatch.setattr(executor, "_generate_with_model", fake_generate)

        response = await executor.generate(MESSAGES, temperature=0.2)
        assert response.content == "ok"
        assert tried == ["openai/a", "openai/b"]

    @pytest.mark.asyncio
    async def test_all_models_failing_raises(self, monkeypatch):
        executor = LLMExecutor(model="openai/a")

        async def fake_generate(model, **kwargs):
            raise ProviderError("down")

        monkeypatch.setattr(executor, "_generate_with_model", fake_generate)

        with pytest.raises(ProviderError, match="All models failed"):
            await executor.generate(MESSAGES)


class TestErrorMapping:
    """SDK failures become typed provider errors."""

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("Error code: 429 - Too Many Requests", RateLimitError),
            ("Rate limit reached for gpt-4o-mini", RateLimitError),
            ("Error code: 401 - Incorrect API key provided", AuthenticationError),
            ("The response was filtered due to the content management policy", ContentFilterError),
            ("The model `gpt-9` does not exist", ModelError),
            ("Connection reset by peer", ProviderError),
        ],
    )
    def test_classify(self, message, expected):
        error = classify_provider_error(RuntimeError(message))
        assert type(error) is expected
        assert message in str(error)

    @pytest.mark.asyncio
    async def test_single_response_failure_is_typed(self, monkeypatch):
        executor = LLMExecutor(model="openai/gpt-4o-mini")
        monkeypatch.setattr(
            executor,
            "_create_agent",
            lambda *args: _RaisingAgent(RuntimeError("Error code: 401 - invalid api key")),
        )

        with pytest.raises(AuthenticationError):
            await executor._generate_with_model("openai/gpt-4o-mini", MESSAGES, 8, 0.2, None)

    @pytest.mark.asyncio
    async def test_typed_failure_still_falls_back(self, monkeypatch):
        executor = LLMExecutor(model="openai/a", fallback_models=["mock/backup"])
        monkeypatch.setattr(
            executor,
            "_create_agent",
            lambda *args: _RaisingAgent(RuntimeError("The model `a` does not exist")),
        )

        response = await executor.generate(MESSAGES)
        assert response.content == "Mock response for mock/backup"


class TestGenerateStream:
    """Tests for streaming."""

    @pytest.mark.asyncio
    async def test_mock_model_streams_single_chunk(self):
        executor = LLMExecutor(model="mock/test")
        chunks = [chunk async for chunk in executor.generate_stream(MESSAGES)]
        assert chunks == ["Mock response for mock/test"]

    @pytest.mark.asyncio
    async def test_failure_before_first_chunk_falls_back(self, monkeypatch):
        executor = LLMExecutor(model="openai/a")
        monkeypatch.setattr(executor, "_create_agent", lambda *args: _FailingStreamAgent([]))

        async def fake_generate(*args, **kwargs):
            return LLMResponse(content="Un texte", model="openai/a")

        monkeypatch.setattr(executor, "_generate_with_model", fake_generate)

        chunks = [chunk async for chunk in executor.generate_stream(MESSAGES)]
        assert chunks == ["Un texte"]

    @pytest.mark.asyncio
    async def test_failure_mid_stream_raises(self, monkeypatch):
        executor = LLMExecutor(model="openai/a")
        monkeypatch.setattr(
            executor, "_create_agent", lambda *args: _FailingStreamAgent(["Un "])
        )

        chunks: list[str] = []
        with pytest.raises(ProviderError, match="Stream interrupted"):
            async for chunk in executor.generate_stream(MESSAGES):
                chunks.append(chunk)
        assert chunks == ["Un "]


class TestCreateExecutor:
    """Tests for the factory."""

    def test_from_config(self):
        executor = create_executor(
            LLMProviderConfig(model="groq/llama", fallback_models=["openai/gpt-4o-mini"])
        )
        assert executor.model == "groq/llama"
        assert executor.provider_name == "agno"
