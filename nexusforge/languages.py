"""Language classification by file extension."""

from __future__ import annotations

import enum
from pathlib import Path


class Language(enum.Enum):
    """A supported source language, or UNKNOWN."""

    RUST = "rust"
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        """Human-readable language name (e.g., "TypeScript")."""
        return _LABELS[self]

    @classmethod
    def from_extension(cls, ext: str) -> Language:
        """Look up a language by extension, with or without the leading dot.

        Args:
            ext: File extension such as "rs", ".py" or "TSX".

        Returns:
            The matching Language, or Language.UNKNOWN.
        """
        return EXTENSION_MAP.get(ext.lower().lstrip("."), cls.UNKNOWN)

    def __str__(self) -> str:
        return self.label


_LABELS: dict[Language, str] = {
    Language.RUST: "Rust",
    Language.PYTHON: "Python",
    Language.JAVASCRIPT: "JavaScript",
    Language.TYPESCRIPT: "TypeScript",
    Language.UNKNOWN: "Unknown",
}

EXTENSION_MAP: dict[str, Language] = {
    "rs": Language.RUST,
    "py": Language.PYTHON,
    "pyw": Language.PYTHON,
    "js": Language.JAVASCRIPT,
    "jsx": Language.JAVASCRIPT,
    "mjs": Language.JAVASCRIPT,
    "cjs": Language.JAVASCRIPT,
    "ts": Language.TYPESCRIPT,
    "tsx": Language.TYPESCRIPT,
    "mts": Language.TYPESCRIPT,
    "cts": Language.TYPESCRIPT,
}

SUPPORTED_LANGUAGES: tuple[Language, ...] = tuple(
    lang for lang in Language if lang is not Language.UNKNOWN
)


def classify(path: Path | str) -> Language:
    """Classify a file path by its extension (case-insensitive).

    Args:
        path: Path to a file; it need not exist.

    Returns:
        The Language for the extension, or Language.UNKNOWN if the path has
        no extension or an unsupported one.
    """
    suffix = Path(path).suffix
    if not suffix:
        return Language.UNKNOWN
    return Language.from_extension(suffix)


def language_by_name(name: str) -> Language | None:
    """Resolve a user-supplied language name like "python" or "Rust"."""
    try:
        lang = Language(name.lower())
    except ValueError:
        return None
    if lang is Language.UNKNOWN:
        return None
    return lang
