"""Grammar registry: one tree-sitter parser per supported language."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import tree_sitter_language_pack
from tree_sitter_language_pack import get_parser

from nexusforge.errors import GrammarInitError, ParseError, UnsupportedLanguageError
from nexusforge.languages import SUPPORTED_LANGUAGES, Language

if TYPE_CHECKING:
    from tree_sitter import Parser, Tree

logger = logging.getLogger(__name__)

GRAMMAR_NAMES: dict[Language, str] = {
    Language.RUST: "rust",
    Language.PYTHON: "python",
    Language.JAVASCRIPT: "javascript",
    Language.TYPESCRIPT: "typescript",
}

# .tsx files need the JSX-aware dialect; it rejects <T>value casts.
TSX_GRAMMAR = "tsx"

# The 1.x language pack raises its own Error hierarchy (e.g. DownloadError).
_PACK_ERROR = getattr(tree_sitter_language_pack, "Error", RuntimeError)
GRAMMAR_LOAD_ERRORS = (LookupError, ValueError, OSError, RuntimeError, _PACK_ERROR)


class GrammarRegistry:
    """Owns one configured parser per supported language.

    Parsers are created eagerly: a grammar that fails to load raises
    GrammarInitError at construction. TypeScript gets a second parser for
    the tsx dialect. A registry must not be shared between threads or
    processes; give each worker its own.
    """

    def __init__(
        self, languages: tuple[Language, ...] = SUPPORTED_LANGUAGES
    ) -> None:
        self._parsers: dict[Language, Parser] = {}
        self._tsx_parser: Parser | None = None
        for lang in languages:
            grammar = GRAMMAR_NAMES.get(lang)
            if grammar is None:
                raise GrammarInitError(f"no grammar registered for {lang.label}")
            self._parsers[lang] = _load_parser(grammar, lang)
            if lang is Language.TYPESCRIPT:
                self._tsx_parser = _load_parser(TSX_GRAMMAR, lang)

    @property
    def languages(self) -> tuple[Language, ...]:
        return tuple(self._parsers)

    def supports(self, language: Language) -> bool:
        return language in self._parsers

    def parse(
        self,
        content: str | bytes,
        language: Language,
        *,
        jsx: bool = False,
        allow_errors: bool = False,
    ) -> Tree:
        """Parse source text into a syntax tree.

        Args:
            content: Source text; str is encoded as UTF-8.
            language: Language of the content.
            jsx: Parse TypeScript with the tsx dialect (for .tsx files).
                JavaScript always accepts JSX.
            allow_errors: Return trees containing syntax errors instead of
                raising ParseError.

        Returns:
            The tree-sitter Tree.

        Raises:
            UnsupportedLanguageError: If language is UNKNOWN or unregistered.
            ParseError: If the grammar reports a syntax error.
        """
        parser = self._parsers.get(language)
        if parser is None:
            raise UnsupportedLanguageError(f"unsupported language: {language.label}")
        if jsx and language is Language.TYPESCRIPT and self._tsx_parser is not None:
            parser = self._tsx_parser
        source = content.encode("utf-8") if isinstance(content, str) else content
        tree = parser.parse(source)
        if tree is None:
            raise ParseError(f"{language.label} parser returned no tree")
        if tree.root_node.has_error and not allow_errors:
            row = _first_error_row(tree)
            raise ParseError(f"{language.label} syntax error near line {row}")
        return tree


def _first_error_row(tree: Tree) -> int:
    """Return the 1-based line of the first ERROR or missing node."""
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node.start_point[0] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return tree.root_node.start_point[0] + 1


def _load_parser(grammar: str, lang: Language) -> Parser:
    try:
        parser = get_parser(grammar)
    except GRAMMAR_LOAD_ERRORS as exc:
        raise GrammarInitError(
            f"failed to load {lang.label} grammar: {exc}"
        ) from exc
    logger.debug("loaded %s grammar", grammar)
    return parser
