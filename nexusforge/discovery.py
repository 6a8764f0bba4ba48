"""File discovery with gitignore support."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pathspec

from nexusforge.languages import Language, classify

logger = logging.getLogger(__name__)

SKIP_DIRS: frozenset[str] = frozenset(
    {
        "node_modules",
        "target",
        "build",
        "dist",
        "__pycache__",
        "vendor",
        ".git",
    }
)


def discover_files(
    root: Path,
    *,
    extra_ignores: list[str] | None = None,
    language_filter: Language | None = None,
) -> list[tuple[Path, Language]]:
    """Walk root and return (relative_path, language) for parseable files.

    Only the ``.gitignore`` at root is consulted; nested ignore files are not.

    Args:
        root: Directory to walk.
        extra_ignores: Additional gitignore-style patterns to exclude.
        language_filter: If set, only return files of this language.

    Returns:
        List of (relative_path, language) tuples, sorted by path.
    """
    gitignore = _load_gitignore(root)

    extra_spec = None
    if extra_ignores:
        extra_spec = pathspec.PathSpec.from_lines("gitignore", extra_ignores)

    def ignored(rel: str) -> bool:
        if gitignore.match_file(rel):
            return True
        return extra_spec is not None and extra_spec.match_file(rel)

    results: list[tuple[Path, Language]] = []

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        rel_dir = Path(dirpath).relative_to(root)

        # Prune in place to prevent descent
        dirnames[:] = sorted(
            d
            for d in dirnames
            if d not in SKIP_DIRS
            and not d.startswith(".")
            and not ignored(f"{(rel_dir / d).as_posix()}/")
        )

        for fname in sorted(filenames):
            if fname.startswith("."):
                continue

            full_path = Path(dirpath) / fname
            if full_path.is_symlink() or not full_path.is_file():
                continue

            rel = rel_dir / fname
            if ignored(rel.as_posix()):
                continue

            lang = classify(fname)
            if lang is Language.UNKNOWN:
                continue

            if language_filter is not None and lang is not language_filter:
                continue

            results.append((rel, lang))

    results.sort(key=lambda item: item[0])
    return results


def _load_gitignore(root: Path) -> pathspec.PathSpec:
    """Load .gitignore from root, returning a PathSpec matcher.

    An unreadable or non-UTF-8 .gitignore is treated as empty.
    """
    gitignore_path = root / ".gitignore"
    lines: list[str] = []
    if gitignore_path.is_file():
        try:
            lines = gitignore_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("ignoring unreadable %s: %s", gitignore_path, exc)
    return pathspec.PathSpec.from_lines("gitignore", lines)
