"""CLI entry point for nexusforge."""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import Annotated

import typer

from nexusforge.config import Settings, load_settings
from nexusforge.context import (
    build_codebase_context,
    build_context,
    chunks_from_results,
    estimate_tokens,
)
from nexusforge.errors import NexusForgeError
from nexusforge.indexer import index_directory
from nexusforge.languages import SUPPORTED_LANGUAGES, language_by_name
from nexusforge.models import IndexResult, SearchResult
from nexusforge.parsing import parse_file
from nexusforge.registry import GrammarRegistry
from nexusforge.search import search
from nexusforge.toon import encode_index, encode_results, encode_symbols

SIGNATURE_PREVIEW = 80


class OutputFormat(str, enum.Enum):
    TEXT = "text"
    TOON = "toon"


app = typer.Typer(
    name="nexus",
    help="Index source code with tree-sitter and search it for LLM context.",
    no_args_is_help=True,
)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj if isinstance(ctx.obj, Settings) else Settings()


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _run_index(
    root: Path,
    settings: Settings,
    *,
    extra_ignores: list[str] | None = None,
    max_file_size: int | None = None,
    language: str | None = None,
    fast: bool = False,
) -> IndexResult:
    """Index root with settings applied, converting library errors to exits."""
    language_filter = None
    if language:
        language_filter = language_by_name(language)
        if language_filter is None:
            supported = ", ".join(lang.value for lang in SUPPORTED_LANGUAGES)
            raise _fail(f"unsupported language '{language}'. Supported: {supported}")

    try:
        result = index_directory(
            root,
            extra_ignores=[*settings.exclude_patterns, *(extra_ignores or [])],
            language_filter=language_filter,
            max_file_size=max_file_size or settings.max_file_size,
            fast=fast,
        )
    except NexusForgeError as exc:
        raise _fail(str(exc)) from exc

    for path, message in result.errors:
        typer.echo(f"Warning: {path}: {message}", err=True)
    return result


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            dir_okay=False,
            help="Configuration file (default: ~/.config/nexus/config.toml).",
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging.")
    ] = False,
) -> None:
    """Index source code with tree-sitter and search it for LLM context."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        ctx.obj = load_settings(config)
    except NexusForgeError as exc:
        raise _fail(str(exc)) from exc


@app.command()
def index(
    ctx: typer.Context,
    root: Annotated[
        Path,
        typer.Argument(
            help="Directory to index.",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path("."),
    exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--exclude", "-e", help="Extra gitignore-style pattern to skip."
        ),
    ] = None,
    language: Annotated[
        str | None,
        typer.Option(
            "--language", "-l", help="Restrict to one language (e.g., rust)."
        ),
    ] = None,
    max_file_size: Annotated[
        int | None,
        typer.Option(
            "--max-file-size",
            min=1,
            help="Skip files larger than this many bytes (default from config).",
        ),
    ] = None,
    fast: Annotated[
        bool,
        typer.Option("--fast", help="Parse files in parallel worker processes."),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format."),
    ] = OutputFormat.TEXT,
) -> None:
    """Index a directory and print statistics."""
    result = _run_index(
        root,
        _settings(ctx),
        extra_ignores=exclude,
        max_file_size=max_file_size,
        language=language,
        fast=fast,
    )
    if result.files_indexed == 0 and result.files_skipped == 0:
        raise _fail("no supported files found.")

    if output_format is OutputFormat.TOON:
        typer.echo(encode_index(result))
    else:
        typer.echo(_format_summary(result))

    if result.files_indexed == 0:
        raise typer.Exit(1)


@app.command("search")
def search_command(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Search query.")],
    root: Annotated[
        Path,
        typer.Option(
            "--root",
            "-r",
            exists=True,
            file_okay=False,
            resolve_path=True,
            help="Directory to search.",
        ),
    ] = Path("."),
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Maximum results."),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format."),
    ] = OutputFormat.TEXT,
) -> None:
    """Search symbols by name and source content."""
    settings = _settings(ctx)
    result = _run_index(root, settings)
    if not result.files:
        raise _fail("no supported files found.")

    results = search(result.files, query, limit or settings.search_limit)

    if output_format is OutputFormat.TOON:
        typer.echo(encode_results(query, results))
        return

    if not results:
        typer.echo(f'No results found for "{query}".')
        return
    typer.echo(_format_results(results, query))


@app.command()
def symbols(
    file: Annotated[
        Path,
        typer.Argument(
            help="Source file to parse.",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format."),
    ] = OutputFormat.TEXT,
) -> None:
    """Parse a single file and list its symbols."""
    try:
        parsed = parse_file(file, GrammarRegistry())
    except (NexusForgeError, OSError) as exc:
        raise _fail(str(exc)) from exc

    if output_format is OutputFormat.TOON:
        typer.echo(encode_symbols([parsed]))
        return

    counts = parsed.symbol_counts()
    typer.echo(
        f"{parsed.path} ({parsed.language.label}, {parsed.line_count} lines, "
        f"{counts.total} symbols)"
    )
    for symbol in parsed.symbols:
        typer.echo(
            f"  {symbol.line_start:>5}-{symbol.line_end:<5} "
            f"{symbol.kind.value:<9} {symbol.name}"
        )


@app.command()
def context(
    ctx: typer.Context,
    question: Annotated[str, typer.Argument(help="Question about the codebase.")],
    root: Annotated[
        Path,
        typer.Option(
            "--root",
            "-r",
            exists=True,
            file_okay=False,
            resolve_path=True,
            help="Directory to gather context from.",
        ),
    ] = Path("."),
    max_tokens: Annotated[
        int | None,
        typer.Option("--max-tokens", "-t", min=1, help="Token budget."),
    ] = None,
) -> None:
    """Print the prompt context that would accompany a question."""
    settings = _settings(ctx)
    result = _run_index(root, settings)
    if not result.files:
        raise _fail("no supported files found.")

    budget = max_tokens or settings.max_tokens
    overview = build_codebase_context(result.files, question)
    remaining = max(budget - estimate_tokens(overview), 0)

    results = search(result.files, question, settings.search_limit)
    code = build_context(chunks_from_results(results, result.files), remaining)

    typer.echo(overview)
    if code:
        typer.echo("\n### Relevant Code")
        typer.echo(code)


def _format_summary(result: IndexResult) -> str:
    counts = result.symbols
    title = (
        "Indexing completed with warnings"
        if result.files_skipped
        else "Indexing successful"
    )
    lines = [
        f"{title}: {result.root}",
        f"  Files indexed:  {result.files_indexed:>6}",
        f"  Total lines:    {result.total_lines:>6}",
        f"  Symbols found:  {counts.total:>6}",
    ]
    if counts.total:
        lines.append(
            f"    functions: {counts.functions} | types: {counts.types} | "
            f"enums: {counts.enums} | traits: {counts.traits} | "
            f"modules: {counts.modules} | constants: {counts.constants} | "
            f"impls: {counts.impls} | type aliases: {counts.type_aliases}"
        )
    lines.append(f"  Time elapsed:   {result.time_taken:.2f}s")
    if result.files_skipped:
        lines.append(f"  Skipped files:  {result.files_skipped:>6}")
    return "\n".join(lines)


def _format_results(results: list[SearchResult], query: str) -> str:
    lines = [f'Found {len(results)} results for "{query}"', ""]
    for i, result in enumerate(results, start=1):
        symbol = result.symbol
        lines.append(
            f"  {i}. {symbol.name} ({symbol.kind.value}) "
            f"[{result.match_type.value}] {result.score:.1f}"
        )
        lines.append(f"      {result.path}:{symbol.line_start}")
        if symbol.signature:
            preview = symbol.signature[:SIGNATURE_PREVIEW]
            if len(symbol.signature) > SIGNATURE_PREVIEW:
                preview += "..."
            lines.append(f"      {preview}")
    return "\n".join(lines)
