"""Dependency injection for API routes.

Dependencies are configured from settings and can be overridden for testing
through `app.dependency_overrides`.
"""

from typing import Annotated

from fastapi import Depends

from lamachine.config import Settings
from lamachine.config import get_settings as load_settings
from lamachine.observability.logging import get_logger
from lamachine.providers.llm import LLMProvider, create_executor

logger = get_logger(__name__)

# Shared across runs; a provider holds no per-run state
_llm_provider: LLMProvider | None = None


def get_settings() -> Settings:
    """Get application settings (cached by the config package)."""
    return load_settings()


def get_llm_provider(
    settings: Annotated[Settings, Depends(get_settings)],
) -> LLMProvider:
    """Get the text generator configured under `providers.llm`."""
    global _llm_provider
    if _llm_provider is None:
        _llm_provider = create_executor(settings.providers.llm)
        logger.info("llm_provider_initialized", model=settings.providers.llm.model)
    return _llm_provider


def reset_dependencies() -> None:
    """Drop cached instances. Useful for testing."""
    global _llm_provider
    _llm_provider = None


SettingsDep = Annotated[Settings, Depends(get_settings)]
LLMProviderDep = Annotated[LLMProvider, Depends(get_llm_provider)]
