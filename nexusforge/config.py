"""Configuration loaded from a TOML file."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import toml

from nexusforge.errors import ConfigError

CONFIG_ENV_VAR = "NEXUS_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "nexus" / "config.toml"

_BYTES_PER_MB = 1024 * 1024


@dataclass
class Settings:
    """Index, search and context defaults.

    Example config file::

        [index]
        exclude_patterns = ["*.lock", "generated/"]
        max_file_size_mb = 10

        [search]
        limit = 10

        [context]
        max_tokens = 8000
    """

    exclude_patterns: list[str] = field(default_factory=lambda: ["*.lock"])
    max_file_size_mb: int = 10
    search_limit: int = 10
    max_tokens: int = 8000

    @property
    def max_file_size(self) -> int:
        """Maximum indexed file size in bytes."""
        return self.max_file_size_mb * _BYTES_PER_MB


def config_path(custom_path: Path | None = None) -> Path:
    """Resolve the config file location.

    Order: explicit path, ``$NEXUS_CONFIG``, ``~/.config/nexus/config.toml``.
    """
    if custom_path is not None:
        return custom_path
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def load_settings(custom_path: Path | None = None) -> Settings:
    """Load settings from TOML, falling back to defaults if no file exists.

    Args:
        custom_path: Explicit config file; it must exist if given.

    Returns:
        The loaded Settings.

    Raises:
        ConfigError: If the file cannot be read or parsed, or has values of
            the wrong type.
    """
    path = config_path(custom_path)
    if not path.is_file():
        if custom_path is not None:
            raise ConfigError(f"config file not found: {path}")
        return Settings()

    try:
        data = toml.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, toml.TomlDecodeError) as exc:
        raise ConfigError(f"failed to read config from {path}: {exc}") from exc

    index = _table(data, "index")
    search = _table(data, "search")
    context = _table(data, "context")
    defaults = Settings()

    return Settings(
        exclude_patterns=_str_list(
            index.get("exclude_patterns", defaults.exclude_patterns),
            "index.exclude_patterns",
        ),
        max_file_size_mb=_positive_int(
            index.get("max_file_size_mb", defaults.max_file_size_mb),
            "index.max_file_size_mb",
        ),
        search_limit=_positive_int(
            search.get("limit", defaults.search_limit), "search.limit"
        ),
        max_tokens=_positive_int(
            context.get("max_tokens", defaults.max_tokens), "context.max_tokens"
        ),
    )


def _table(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{key}] must be a table")
    return value


def _str_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{key} must be a list of strings")
    return list(value)


def _positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{key} must be a positive integer")
    return value
