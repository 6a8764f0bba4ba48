"""Core data structures for nexusforge."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field, fields
from pathlib import Path

from nexusforge.languages import Language


class SymbolKind(enum.Enum):
    """The syntactic kind of a symbol."""

    FUNCTION = "fn"
    STRUCT = "struct"
    CLASS = "class"
    ENUM = "enum"
    TRAIT = "trait"
    INTERFACE = "interface"
    MODULE = "mod"
    CONSTANT = "const"
    IMPL = "impl"
    TYPE_ALIAS = "type"


class MatchType(enum.Enum):
    """How a search result matched the query, most specific first."""

    EXACT_NAME = "exact"
    PARTIAL_NAME = "name"
    CONTENT_MATCH = "content"
    CONTEXT_MATCH = "context"


@dataclass(frozen=True)
class Symbol:
    """A named code entity discovered in a syntax tree.

    Lines are 1-based and inclusive. ``signature`` is the first physical line
    of the defining node, and is only captured for functions.
    """

    name: str
    kind: SymbolKind
    line_start: int
    line_end: int
    signature: str | None = None


@dataclass
class SymbolCounts:
    """Symbol totals per coarse category."""

    functions: int = 0
    types: int = 0
    enums: int = 0
    traits: int = 0
    modules: int = 0
    constants: int = 0
    impls: int = 0
    type_aliases: int = 0

    @classmethod
    def from_symbols(cls, symbols: Iterable[Symbol]) -> SymbolCounts:
        """Count symbols by category."""
        counts = cls()
        for symbol in symbols:
            attr = _COUNT_FIELD[symbol.kind]
            setattr(counts, attr, getattr(counts, attr) + 1)
        return counts

    @property
    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    def __add__(self, other: SymbolCounts) -> SymbolCounts:
        if not isinstance(other, SymbolCounts):
            return NotImplemented
        return SymbolCounts(
            **{
                f.name: getattr(self, f.name) + getattr(other, f.name)
                for f in fields(self)
            }
        )


_COUNT_FIELD: dict[SymbolKind, str] = {
    SymbolKind.FUNCTION: "functions",
    SymbolKind.STRUCT: "types",
    SymbolKind.CLASS: "types",
    SymbolKind.ENUM: "enums",
    SymbolKind.TRAIT: "traits",
    SymbolKind.INTERFACE: "traits",
    SymbolKind.MODULE: "modules",
    SymbolKind.CONSTANT: "constants",
    SymbolKind.IMPL: "impls",
    SymbolKind.TYPE_ALIAS: "type_aliases",
}


@dataclass(frozen=True)
class ParsedFile:
    """A source file with its extracted symbols, in traversal order."""

    path: Path
    language: Language
    content: str = field(repr=False)
    symbols: tuple[Symbol, ...]
    line_count: int

    def symbol_counts(self) -> SymbolCounts:
        return SymbolCounts.from_symbols(self.symbols)

    def lines_for(self, symbol: Symbol) -> list[str]:
        """Return the source lines spanned by symbol, clamped to the file."""
        lines = source_lines(self.content)
        start = max(symbol.line_start - 1, 0)
        end = min(symbol.line_end, len(lines))
        return lines[start:end]


@dataclass(frozen=True)
class SearchResult:
    """A ranked symbol match for a query."""

    path: Path
    symbol: Symbol
    score: float
    match_type: MatchType
    context: str = ""


@dataclass
class IndexResult:
    """Outcome of indexing a directory.

    ``files`` is the in-memory corpus. The counters are derived from
    ``files`` and ``errors``.
    """

    root: Path
    files: list[ParsedFile] = field(default_factory=list, repr=False)
    errors: list[tuple[Path, str]] = field(default_factory=list)
    time_taken: float = 0.0

    @property
    def files_indexed(self) -> int:
        return len(self.files)

    @property
    def files_skipped(self) -> int:
        return len(self.errors)

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files)

    @property
    def symbols(self) -> SymbolCounts:
        total = SymbolCounts()
        for parsed in self.files:
            total = total + parsed.symbol_counts()
        return total


def source_lines(text: str) -> list[str]:
    """Split text into lines on ``\\n`` only, the way tree-sitter counts rows.

    A trailing ``\\r`` is stripped from each line. Unlike str.splitlines, form
    feeds and Unicode separators stay inside their line.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]
