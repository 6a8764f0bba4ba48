"""Directory indexing: discover, parse and aggregate source files."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from nexusforge.discovery import discover_files
from nexusforge.errors import ParseError
from nexusforge.languages import Language
from nexusforge.models import IndexResult, ParsedFile
from nexusforge.parsing import parse_source
from nexusforge.registry import GrammarRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB


def index_file(
    root: Path,
    rel_path: Path,
    language: Language,
    registry: GrammarRegistry,
    max_size_bytes: int = DEFAULT_MAX_FILE_SIZE,
) -> tuple[ParsedFile | None, str | None]:
    """Parse one discovered file, returning the result or a skip reason.

    Args:
        root: Directory the walk started from.
        rel_path: Path of the file relative to root.
        language: Language reported by discovery.
        registry: Grammar registry owned by the caller.
        max_size_bytes: Skip files larger than this.

    Returns:
        Tuple of (parsed_file_or_None, warning_or_None).
    """
    abs_path = root / rel_path
    try:
        size = abs_path.stat().st_size
        if size > max_size_bytes:
            return None, f"skipped (>{max_size_bytes} bytes)"
        parsed = parse_source(abs_path.read_bytes(), rel_path, language, registry)
    except ParseError as exc:
        return None, exc.message
    except OSError as exc:
        return None, exc.strerror or str(exc)
    return parsed, None


def index_directory(
    root: Path,
    *,
    registry: GrammarRegistry | None = None,
    extra_ignores: list[str] | None = None,
    language_filter: Language | None = None,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    fast: bool = False,
) -> IndexResult:
    """Index every supported source file under root.

    Files that fail to read or parse are recorded in ``errors`` and skipped;
    the remaining files are still indexed.

    Args:
        root: Directory to index.
        registry: Grammar registry to use; a new one is built if omitted.
            Ignored when ``fast`` is set, since each worker owns its own.
        extra_ignores: Additional gitignore-style patterns to exclude.
        language_filter: If set, only index files of this language.
        max_file_size: Skip files larger than this many bytes.
        fast: Parse files in a process pool.

    Returns:
        The IndexResult holding the corpus and statistics.

    Raises:
        FileNotFoundError: If root does not exist.
        NotADirectoryError: If root is not a directory.
        GrammarInitError: If a grammar cannot be loaded.
    """
    start = time.perf_counter()
    if not root.exists():
        raise FileNotFoundError(f"no such directory: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"not a directory: {root}")

    files = discover_files(
        root, extra_ignores=extra_ignores, language_filter=language_filter
    )
    logger.debug("discovered %d files under %s", len(files), root)

    if fast and len(files) > 1:
        from nexusforge.parallel import parse_files_parallel

        parsed_files, errors = parse_files_parallel(
            root, files, max_size_bytes=max_file_size
        )
    else:
        if registry is None:
            registry = GrammarRegistry()
        parsed_files, errors = _parse_files_sequential(
            root, files, registry, max_file_size
        )

    return IndexResult(
        root=root,
        files=parsed_files,
        errors=errors,
        time_taken=time.perf_counter() - start,
    )


def _parse_files_sequential(
    root: Path,
    files: list[tuple[Path, Language]],
    registry: GrammarRegistry,
    max_size_bytes: int,
) -> tuple[list[ParsedFile], list[tuple[Path, str]]]:
    """Parse files one by one, collecting skipped files with their reasons."""
    parsed_files: list[ParsedFile] = []
    errors: list[tuple[Path, str]] = []
    for rel_path, language in files:
        if not registry.supports(language):
            continue
        parsed, warning = index_file(
            root, rel_path, language, registry, max_size_bytes
        )
        if warning is not None:
            logger.debug("skipping %s: %s", rel_path, warning)
            errors.append((rel_path, warning))
            continue
        if parsed is not None:
            parsed_files.append(parsed)
    return parsed_files, errors
