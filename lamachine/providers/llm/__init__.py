"""LLM providers for text generation.

The runner depends only on the LLMProvider interface. LLMExecutor is the
production implementation (Agno-backed, routed by model string) and
MockLLMProvider the scripted one used by tests and local development.
"""

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
from lamachine.providers.llm.executor import LLMExecutor, create_executor
from lamachine.providers.llm.mock import MockLLMProvider

__all__ = [
    # Data models
    "LLMMessage",
    "LLMResponse",
    "TokenUsage",
    # Interface
    "LLMProvider",
    # Errors
    "ProviderError",
    "AuthenticationError",
    "RateLimitError",
    "ModelError",
    "ContentFilterError",
    # Implementations
    "LLMExecutor",
    "create_executor",
    "MockLLMProvider",
]
