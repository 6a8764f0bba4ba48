"""Error taxonomy for indexing, parsing and configuration."""

from __future__ import annotations

from pathlib import Path


class NexusForgeError(Exception):
    """Base class for all nexusforge errors."""


class GrammarInitError(NexusForgeError):
    """A tree-sitter grammar could not be loaded. Fatal for the whole run."""


class UnsupportedLanguageError(NexusForgeError):
    """A parse was requested for a language with no registered grammar."""


class ParseError(NexusForgeError):
    """A single file's content could not be parsed.

    Recoverable: directory indexing records the file as skipped and moves on.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}" if path is not None else message)


class ConfigError(NexusForgeError):
    """The configuration file is unreadable or has invalid values."""
