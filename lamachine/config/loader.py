"""Layered TOML configuration files.

`config/default.toml` carries the shipped runner policy and
`config/{LAMACHINE_ENV}.toml` overrides it table by table. Either layer may
be absent; the pydantic models then supply the values.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "LAMACHINE_CONFIG_DIR"
ENVIRONMENT_VAR = "LAMACHINE_ENV"
DEFAULT_ENVIRONMENT = "development"

# How many directories up from the working directory to look for config/
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Locate the configuration directory.

    Raises:
        FileNotFoundError: If LAMACHINE_CONFIG_DIR names a missing directory
    """
    explicit = os.environ.get(CONFIG_DIR_VAR)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {explicit}")
        return path

    cwd = Path.cwd()
    for base in [cwd, *cwd.parents][:_SEARCH_DEPTH]:
        if (base / "config").is_dir():
            return base / "config"
    return Path("config")


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_VAR, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML layer.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    return tomllib.loads(file_path.read_text(encoding="utf-8"))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge `override` onto `base` table by table; neither input is modified."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def config_layers(config_dir: Path, env: str) -> list[Path]:
    """Files read by `load_config`, lowest precedence first."""
    return [config_dir / "default.toml", config_dir / f"{env}.toml"]


def load_config(config_dir: Path | None = None, env: str | None = None) -> dict[str, Any]:
    """Read every present layer and merge them.

    Args:
        config_dir: Directory holding the TOML files (located when omitted)
        env: Environment layer name (LAMACHINE_ENV when omitted)
    """
    config_dir = config_dir or get_config_dir()
    env = env or get_environment()

    config: dict[str, Any] = {}
    for layer in config_layers(config_dir, env):
        if layer.is_file():
            config = deep_merge(config, load_toml(layer))
    return config
