"""Fixtures for API tests."""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sse_starlette.sse import AppStatus

from lamachine.api.app import create_app
from lamachine.api.dependencies import get_llm_provider, get_settings, reset_dependencies
from lamachine.config import Settings
from lamachine.config.models.runner import LengthSequenceConfig
from lamachine.providers.llm import MockLLMProvider


@pytest.fixture
def settings() -> Settings:
    """Settings with the word-by-word pacing disabled."""
    return Settings(length_sequence=LengthSequenceConfig(emit_delay_seconds=0.0))


@pytest.fixture
def mock_llm() -> MockLLMProvider:
    return MockLLMProvider(default_response="Un chat noir dort sur un mur.")


@pytest.fixture
def app(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    settings: Settings,
    mock_llm: MockLLMProvider,
) -> Generator[FastAPI, None, None]:
    """Create the application with an empty config dir and a mock generator."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("LAMACHINE_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("LAMACHINE_ENV", "test")

    # sse-starlette keeps an exit event bound to the first event loop it saw
    if hasattr(AppStatus, "should_exit_event"):
        AppStatus.should_exit_event = None

    reset_dependencies()
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_llm_provider] = lambda: mock_llm
    yield app
    app.dependency_overrides.clear()
    reset_dependencies()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)
