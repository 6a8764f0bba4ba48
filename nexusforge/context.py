"""Token-budgeted context assembly for LLM prompts."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from nexusforge.models import ParsedFile, SearchResult, Symbol
from nexusforge.search import query_keywords

MAX_RELEVANT_SYMBOLS = 10
MAX_OVERVIEW_DIRS = 5
MAX_FILES_PER_DIR = 3


@dataclass(frozen=True)
class ContextChunk:
    """A piece of text competing for space in a prompt."""

    content: str
    token_count: int
    source: Path | None = None
    relevance: float = 0.0

    @classmethod
    def from_text(
        cls, content: str, source: Path | None = None, relevance: float = 0.0
    ) -> ContextChunk:
        """Build a chunk whose token count is estimated from its text."""
        return cls(
            content=content,
            token_count=estimate_tokens(content),
            source=source,
            relevance=relevance,
        )


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per four characters."""
    return len(text) // 4


def build_context(chunks: Iterable[ContextChunk], max_tokens: int) -> str:
    """Concatenate chunks in order until the token budget is reached.

    Selection is greedy and stops at the first chunk that does not fit, even
    if a later, smaller chunk would.

    Args:
        chunks: Chunks in priority order.
        max_tokens: Token budget for the whole context.

    Returns:
        The assembled context string.
    """
    parts: list[str] = []
    used = 0
    for chunk in chunks:
        if used + chunk.token_count > max_tokens:
            break
        if chunk.source is not None:
            parts.append(f"// Source: {chunk.source}")
        parts.append(chunk.content)
        used += chunk.token_count
    return "\n".join(parts)


def chunks_from_results(
    results: Sequence[SearchResult], corpus: Iterable[ParsedFile]
) -> list[ContextChunk]:
    """Turn ranked search results into chunks of the matching source spans.

    Args:
        results: Search results, best first.
        corpus: The parsed files the results were drawn from.

    Returns:
        One chunk per result whose file is in the corpus, in result order.
    """
    by_path = {parsed.path: parsed for parsed in corpus}
    chunks: list[ContextChunk] = []
    for result in results:
        parsed = by_path.get(result.path)
        if parsed is None:
            continue
        text = "\n".join(parsed.lines_for(result.symbol))
        source = Path(f"{result.path}:{result.symbol.line_start}")
        chunks.append(ContextChunk.from_text(text, source, result.score))
    return chunks


def build_codebase_context(files: Sequence[ParsedFile], question: str) -> str:
    """Summarize a corpus for a free-form question about the codebase.

    The summary has three sections: an overview (file count and languages),
    symbols whose names overlap the question's keywords, and a per-directory
    file structure listing.

    Args:
        files: The indexed corpus.
        question: The user's question.

    Returns:
        Markdown text suitable for a prompt.
    """
    keywords = query_keywords(question)
    languages = sorted({parsed.language.label for parsed in files})

    parts = [
        "### Codebase Overview",
        f"- {len(files)} files indexed",
        f"- Languages: {', '.join(languages) if languages else 'none'}",
        "",
    ]

    relevant: list[tuple[ParsedFile, Symbol]] = []
    for parsed in files:
        for symbol in parsed.symbols:
            name = symbol.name.lower()
            if any(kw in name or name in kw for kw in keywords):
                relevant.append((parsed, symbol))

    if relevant:
        parts.append("### Relevant Symbols")
        for parsed, symbol in relevant[:MAX_RELEVANT_SYMBOLS]:
            parts.append(
                f"- `{symbol.name}` ({symbol.kind.value}) in `{parsed.path}` "
                f"(lines {symbol.line_start}-{symbol.line_end})"
            )
            if symbol.signature:
                parts.append(f"  ```\n  {symbol.signature}\n  ```")
        parts.append("")

    parts.append("### File Structure")
    by_dir: dict[str, list[ParsedFile]] = defaultdict(list)
    for parsed in files:
        by_dir[parsed.path.parent.as_posix()].append(parsed)

    for directory in sorted(by_dir)[:MAX_OVERVIEW_DIRS]:
        dir_files = by_dir[directory]
        parts.append(f"- `{directory}/`")
        for parsed in dir_files[:MAX_FILES_PER_DIR]:
            counts = parsed.symbol_counts()
            parts.append(
                f"  - `{parsed.path.name}` "
                f"({counts.functions} functions, {counts.types} types)"
            )
        if len(dir_files) > MAX_FILES_PER_DIR:
            parts.append(f"  - ... and {len(dir_files) - MAX_FILES_PER_DIR} more")

    return "\n".join(parts)


def summarize_file(parsed: ParsedFile, limit: int = 15) -> str:
    """List a file's language, size and first few symbols."""
    lines = [
        f"File: {parsed.path}",
        f"Language: {parsed.language.label}",
        f"Lines: {parsed.line_count}",
    ]
    if parsed.symbols:
        lines.append("Key symbols:")
        for symbol in parsed.symbols[:limit]:
            lines.append(
                f"- {symbol.kind.value} {symbol.name} (line {symbol.line_start})"
            )
    return "\n".join(lines)
