"""Parallel file parsing for the --fast flag."""

from __future__ import annotations

import functools
import logging
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path

from nexusforge.indexer import DEFAULT_MAX_FILE_SIZE, index_file
from nexusforge.languages import Language
from nexusforge.models import ParsedFile
from nexusforge.registry import GrammarRegistry

logger = logging.getLogger(__name__)


@functools.cache
def _worker_registry() -> GrammarRegistry:
    """Return this process's grammar registry, built on first use."""
    return GrammarRegistry()


def _parse_file_worker(
    root: Path,
    rel_path: Path,
    language: Language,
    max_size_bytes: int,
) -> tuple[Path, ParsedFile | None, str | None]:
    """Parse a single file in a worker process.

    Module-level function required for ProcessPoolExecutor pickling.

    Returns:
        Tuple of (rel_path, parsed_file_or_None, warning_or_None).
    """
    parsed, warning = index_file(
        root, rel_path, language, _worker_registry(), max_size_bytes
    )
    return rel_path, parsed, warning


def parse_files_parallel(
    root: Path,
    files: list[tuple[Path, Language]],
    *,
    max_size_bytes: int | None = None,
    max_workers: int | None = None,
) -> tuple[list[ParsedFile], list[tuple[Path, str]]]:
    """Parse files in parallel using ProcessPoolExecutor.

    Each worker process owns its own GrammarRegistry. Results are sorted by
    path so the corpus matches the sequential order.

    Args:
        root: Directory the files were discovered under.
        files: List of (rel_path, language) tuples from discovery.
        max_size_bytes: Skip files larger than this (default 10MB).
        max_workers: Maximum number of worker processes.

    Returns:
        Tuple of (parsed files, skipped files with reasons).
    """
    if max_size_bytes is None:
        max_size_bytes = DEFAULT_MAX_FILE_SIZE
    if max_workers is None:
        max_workers = min(os.cpu_count() or 1, max(len(files), 1))

    parsed_files: list[ParsedFile] = []
    errors: list[tuple[Path, str]] = []
    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(
                _parse_file_worker, root, rel_path, language, max_size_bytes
            )
            for rel_path, language in files
        ]
        for future in as_completed(futures):
            rel_path, parsed, warning = future.result()
            if warning is not None:
                logger.debug("skipping %s: %s", rel_path, warning)
                errors.append((rel_path, warning))
                continue
            if parsed is not None:
                parsed_files.append(parsed)

    parsed_files.sort(key=lambda pf: pf.path)
    errors.sort(key=lambda item: item[0])
    return parsed_files, errors
