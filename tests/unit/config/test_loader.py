"""Unit tests for the layered TOML loader."""

import tomllib
from pathlib import Path

import pytest

from lamachine.config import get_settings
from lamachine.config.loader import config_layers, get_config_dir, load_config
from lamachine.config.models.providers import LLMProviderConfig
from lamachine.config.models.runner import LengthSequenceConfig, RunnerConfig

SHIPPED_CONFIG = Path(__file__).resolve().parents[3] / "config"


@pytest.fixture
def staged_config(tmp_path: Path) -> Path:
    """A config directory holding a copy of the shipped defaults."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    default_toml = (SHIPPED_CONFIG / "default.toml").read_text(encoding="utf-8")
    (config_dir / "default.toml").write_text(default_toml, encoding="utf-8")
    return config_dir


class TestShippedConfig:
    """The TOML files shipped in config/."""

    def test_runner_section_matches_code_defaults(self) -> None:
        config = load_config(SHIPPED_CONFIG, env="no-such-env")

        assert RunnerConfig(**config["runner"]) == RunnerConfig()
        assert config["runner"]["hard_max_attempts"] == 5
        assert config["runner"]["early_failure_threshold_chars"] == 140

    def test_length_sequence_section_matches_code_defaults(self) -> None:
        config = load_config(SHIPPED_CONFIG, env="no-such-env")

        assert LengthSequenceConfig(**config["length_sequence"]) == LengthSequenceConfig()
        assert config["length_sequence"]["per_word_retries"] == 7
        assert config["length_sequence"]["first_word_letters"] == 2

    def test_provider_section(self) -> None:
        config = load_config(SHIPPED_CONFIG, env="no-such-env")
        assert LLMProviderConfig(**config["providers"]["llm"]) == LLMProviderConfig()

    def test_development_layer_swaps_model_only(self) -> None:
        config = load_config(SHIPPED_CONFIG, env="development")

        assert config["providers"]["llm"]["model"] == "mock/dev"
        assert config["providers"]["llm"]["timeout"] == 60.0
        assert config["runner"]["hard_max_attempts"] == 5


class TestEnvironmentLayer:
    """An environment file overrides runner policy."""

    def test_override_keeps_sibling_values(self, staged_config: Path) -> None:
        (staged_config / "staging.toml").write_text("[runner]\nhard_max_attempts = 2\n")

        config = load_config(staged_config, env="staging")

        assert config["runner"]["hard_max_attempts"] == 2
        assert config["runner"]["normal_max_attempts"] == 1
        assert config["runner"]["retry_temperature"] == 0.25
        assert config["length_sequence"]["max_words"] == 12

    def test_override_reaches_settings(
        self, staged_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (staged_config / "staging.toml").write_text(
            "[runner]\nhard_max_attempts = 3\n\n[length_sequence]\nper_word_retries = 4\n"
        )
        monkeypatch.setenv("LAMACHINE_CONFIG_DIR", str(staged_config))
        monkeypatch.setenv("LAMACHINE_ENV", "staging")

        settings = get_settings()

        assert settings.runner.hard_max_attempts == 3
        assert settings.length_sequence.per_word_retries == 4
        assert settings.runner.early_failure_threshold_chars == 140

    def test_environment_layer_without_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "ci.toml").write_text("[length_sequence]\nemit_delay_seconds = 0.0\n")

        assert load_config(tmp_path, env="ci") == {"length_sequence": {"emit_delay_seconds": 0.0}}

    def test_no_layers_means_code_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path, env="ci") == {}

    def test_broken_layer_is_reported(self, staged_config: Path) -> None:
        (staged_config / "broken.toml").write_text("[runner\nhard_max_attempts = 2")

        with pytest.raises(tomllib.TOMLDecodeError):
            load_config(staged_config, env="broken")

    def test_layer_order(self, tmp_path: Path) -> None:
        assert config_layers(tmp_path, "prod") == [
            tmp_path / "default.toml",
            tmp_path / "prod.toml",
        ]


class TestConfigDirLookup:
    """Locating config/ from the working directory."""

    def test_found_in_parent(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "config").mkdir()
        nested = tmp_path / "lamachine" / "runner"
        nested.mkdir(parents=True)
        monkeypatch.delenv("LAMACHINE_CONFIG_DIR", raising=False)
        monkeypatch.chdir(nested)

        assert get_config_dir() == tmp_path / "config"

    def test_missing_explicit_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("LAMACHINE_CONFIG_DIR", str(tmp_path / "absent"))

        with pytest.raises(FileNotFoundError, match="absent"):
            get_config_dir()
