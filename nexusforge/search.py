"""Lexical relevance ranking of indexed symbols."""

from __future__ import annotations

from collections.abc import Iterable

from nexusforge.models import (
    MatchType,
    ParsedFile,
    SearchResult,
    Symbol,
    SymbolKind,
    source_lines,
)

EXACT_NAME_SCORE = 100.0
PARTIAL_NAME_SCORE = 80.0
WORD_NAME_BASE, WORD_NAME_STEP = 50.0, 10.0
CONTENT_SCORE = 30.0
WORD_CONTEXT_BASE, WORD_CONTEXT_STEP = 20.0, 5.0

MIN_KEYWORD_LENGTH = 3

KIND_MULTIPLIERS: dict[SymbolKind, float] = {
    SymbolKind.FUNCTION: 1.2,
    SymbolKind.STRUCT: 1.15,
    SymbolKind.CLASS: 1.15,
    SymbolKind.TRAIT: 1.1,
    SymbolKind.INTERFACE: 1.1,
}

PREVIEW_LINES = 3


def query_keywords(query: str) -> list[str]:
    """Split a lower-cased query into keywords of at least three characters."""
    return [w for w in query.lower().split() if len(w) >= MIN_KEYWORD_LENGTH]


def search(
    corpus: Iterable[ParsedFile],
    query: str,
    limit: int = 10,
) -> list[SearchResult]:
    """Rank every symbol in the corpus against a free-text query.

    Tiers, first match wins: exact name (100), name substring in either
    direction (80), keywords found in the name (50 + 10 each), whole query in
    the symbol's source (30), keywords in the source (20 + 5 each). The base
    score is then scaled by the symbol kind's multiplier.

    Args:
        corpus: Parsed files to search.
        query: Free-text query.
        limit: Maximum number of results.

    Returns:
        Results sorted by descending score, ties broken by path, start line
        and name.
    """
    query_lower = query.lower().strip()
    if not query_lower or limit <= 0:
        return []
    keywords = query_keywords(query_lower)

    results: list[SearchResult] = []
    for parsed in corpus:
        lines = source_lines(parsed.content)
        for symbol in parsed.symbols:
            score, match_type = score_symbol(symbol, lines, query_lower, keywords)
            if score <= 0:
                continue
            results.append(
                SearchResult(
                    path=parsed.path,
                    symbol=symbol,
                    score=score,
                    match_type=match_type,
                    context=_preview(lines, symbol),
                )
            )

    results.sort(
        key=lambda r: (-r.score, str(r.path), r.symbol.line_start, r.symbol.name)
    )
    return results[:limit]


def score_symbol(
    symbol: Symbol,
    lines: list[str],
    query_lower: str,
    keywords: list[str],
) -> tuple[float, MatchType]:
    """Score one symbol; a score of 0 means no match.

    Args:
        symbol: The symbol to score.
        lines: Source lines of the file containing the symbol.
        query_lower: The lower-cased query.
        keywords: Query keywords from query_keywords.

    Returns:
        Tuple of (score after kind multiplier, match type).
    """
    name = symbol.name.lower()

    if name == query_lower:
        base, match_type = EXACT_NAME_SCORE, MatchType.EXACT_NAME
    elif query_lower in name or name in query_lower:
        base, match_type = PARTIAL_NAME_SCORE, MatchType.PARTIAL_NAME
    else:
        hits = sum(1 for word in keywords if word in name)
        if hits:
            base = WORD_NAME_BASE + WORD_NAME_STEP * hits
            match_type = MatchType.PARTIAL_NAME
        else:
            base, match_type = _score_content(symbol, lines, query_lower, keywords)

    if base == 0:
        return 0.0, match_type
    return base * KIND_MULTIPLIERS.get(symbol.kind, 1.0), match_type


def _score_content(
    symbol: Symbol,
    lines: list[str],
    query_lower: str,
    keywords: list[str],
) -> tuple[float, MatchType]:
    start = max(symbol.line_start - 1, 0)
    end = min(symbol.line_end, len(lines))
    span = "\n".join(lines[start:end]).lower()

    if query_lower in span:
        return CONTENT_SCORE, MatchType.CONTENT_MATCH
    hits = sum(1 for word in keywords if word in span)
    if hits:
        return WORD_CONTEXT_BASE + WORD_CONTEXT_STEP * hits, MatchType.CONTEXT_MATCH
    return 0.0, MatchType.CONTEXT_MATCH


def _preview(lines: list[str], symbol: Symbol) -> str:
    start = max(symbol.line_start - 1, 0)
    end = min(symbol.line_start - 1 + PREVIEW_LINES, len(lines))
    return "\n".join(lines[start:end])
