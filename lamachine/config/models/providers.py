"""Text-generation provider configuration models."""

from pydantic import BaseModel, Field


class LLMProviderConfig(BaseModel):
    """Configuration for the generator used by the runner."""

    model: str = Field(
        default="openai/gpt-4o-mini",
        description="Model string routed by LLMExecutor (provider/model)",
    )
    fallback_models: list[str] = Field(
        default_factory=list,
        description="Models tried for single responses when the primary fails",
    )
    timeout: float = Field(default=60.0, gt=0, description="Request timeout in seconds")


class ProvidersConfig(BaseModel):
    """Provider configuration."""

    llm: LLMProviderConfig = Field(
        default_factory=LLMProviderConfig,
        description="Text generator",
    )
