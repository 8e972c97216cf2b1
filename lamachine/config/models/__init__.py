"""Configuration model exports.

    from lamachine.config.models import RunnerConfig, LengthSequenceConfig
"""

from lamachine.config.models.api import APIConfig
from lamachine.config.models.observability import LoggingConfig, ObservabilityConfig
from lamachine.config.models.providers import LLMProviderConfig, ProvidersConfig
from lamachine.config.models.runner import LengthSequenceConfig, RunnerConfig

__all__ = [
    "APIConfig",
    "LengthSequenceConfig",
    "LLMProviderConfig",
    "LoggingConfig",
    "ObservabilityConfig",
    "ProvidersConfig",
    "RunnerConfig",
]
