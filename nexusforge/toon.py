"""TOON (Token-Oriented Object Notation) encoder for index and search output."""

from __future__ import annotations

import re
from collections.abc import Sequence

from nexusforge.models import IndexResult, ParsedFile, SearchResult

_NEEDS_QUOTING = re.compile(r'[,:"\\{}\[\]]')
_LOOKS_NUMERIC = re.compile(r"^-?(?:0|[1-9]\d*)(?:\.\d+)?$")
_KEYWORDS = frozenset({"true", "false", "null"})


def encode_index(result: IndexResult) -> str:
    """Encode an IndexResult as TOON: summary, files, symbols and skips.

    Args:
        result: The indexing outcome.

    Returns:
        TOON-formatted string (no trailing newline).
    """
    counts = result.symbols
    parts = [
        f"root: {_encode_value(result.root.name)}",
        f"files_indexed: {result.files_indexed}",
        f"files_skipped: {result.files_skipped}",
        f"total_lines: {result.total_lines}",
        f"symbols_total: {counts.total}",
        f"time_taken: {result.time_taken:.2f}",
    ]

    file_rows = [
        [
            pf.path.as_posix(),
            pf.language.value,
            str(pf.line_count),
            str(len(pf.symbols)),
        ]
        for pf in result.files
    ]
    parts.append(
        _format_tabular("files", ["path", "language", "lines", "symbols"], file_rows)
    )
    parts.append(encode_symbols(result.files))

    error_rows = [[path.as_posix(), message] for path, message in result.errors]
    parts.append(_format_tabular("skipped", ["path", "reason"], error_rows))

    return "\n".join(parts)


def encode_symbols(files: Sequence[ParsedFile]) -> str:
    """Encode the symbol table of one or more parsed files."""
    rows: list[list[str]] = []
    for pf in files:
        for symbol in pf.symbols:
            rows.append(
                [
                    pf.path.as_posix(),
                    symbol.name,
                    symbol.kind.value,
                    str(symbol.line_start),
                    str(symbol.line_end),
                    symbol.signature or "",
                ]
            )
    return _format_tabular(
        "symbols",
        ["file", "name", "kind", "start", "end", "signature"],
        rows,
    )


def encode_results(query: str, results: Sequence[SearchResult]) -> str:
    """Encode ranked search results."""
    rows = [
        [
            r.path.as_posix(),
            r.symbol.name,
            r.symbol.kind.value,
            str(r.symbol.line_start),
            f"{r.score:.2f}",
            r.match_type.value,
        ]
        for r in results
    ]
    return "\n".join(
        [
            f"query: {_encode_value(query)}",
            _format_tabular(
                "results",
                ["file", "name", "kind", "line", "score", "match"],
                rows,
            ),
        ]
    )


def _format_tabular(
    name: str,
    columns: list[str],
    rows: list[list[str]],
) -> str:
    """Format a tabular array in TOON notation.

    Args:
        name: The array field name.
        columns: Column header names.
        rows: List of row data (each row is list of strings).

    Returns:
        TOON tabular array string.
    """
    header = f"{name}[{len(rows)}]{{{','.join(columns)}}}:"
    lines = [header]
    for row in rows:
        encoded = [_encode_value(cell) for cell in row]
        lines.append(f"  {','.join(encoded)}")
    return "\n".join(lines)


def _encode_value(value: str) -> str:
    """Encode a single value, quoting if necessary per TOON rules."""
    if not value:
        return '""'

    if value != value.strip():
        return _quote(value)

    if any(c in value for c in "\n\r\t"):
        return _quote(value)

    if value.lower() in _KEYWORDS:
        return _quote(value)

    if _LOOKS_NUMERIC.match(value):
        return value

    if _NEEDS_QUOTING.search(value) or value.startswith("-"):
        return _quote(value)

    return value


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    return f'"{escaped}"'
