"""Tree-sitter parsing and symbol extraction."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from nexusforge.errors import ParseError, UnsupportedLanguageError
from nexusforge.languages import Language, classify
from nexusforge.models import ParsedFile, Symbol, SymbolKind

if TYPE_CHECKING:
    from tree_sitter import Node, Tree

    from nexusforge.registry import GrammarRegistry

_RUST_KINDS: dict[str, SymbolKind] = {
    "function_item": SymbolKind.FUNCTION,
    "function_signature_item": SymbolKind.FUNCTION,
    "struct_item": SymbolKind.STRUCT,
    "enum_item": SymbolKind.ENUM,
    "impl_item": SymbolKind.IMPL,
    "trait_item": SymbolKind.TRAIT,
    "mod_item": SymbolKind.MODULE,
    "const_item": SymbolKind.CONSTANT,
    "static_item": SymbolKind.CONSTANT,
}

_PYTHON_KINDS: dict[str, SymbolKind] = {
    "function_definition": SymbolKind.FUNCTION,
    "class_definition": SymbolKind.CLASS,
}

_JS_KINDS: dict[str, SymbolKind] = {
    "function_declaration": SymbolKind.FUNCTION,
    "method_definition": SymbolKind.FUNCTION,
    "arrow_function": SymbolKind.FUNCTION,
    "class_declaration": SymbolKind.CLASS,
    "interface_declaration": SymbolKind.INTERFACE,
    "type_alias_declaration": SymbolKind.TYPE_ALIAS,
}

# Node types are strings in tree-sitter, so dispatch is keyed on them.
_SYMBOL_TABLE: dict[Language, dict[str, SymbolKind]] = {
    Language.RUST: _RUST_KINDS,
    Language.PYTHON: _PYTHON_KINDS,
    Language.JAVASCRIPT: _JS_KINDS,
    Language.TYPESCRIPT: _JS_KINDS,
}


def parse_file(path: Path, registry: GrammarRegistry) -> ParsedFile:
    """Read, parse and extract symbols from a single file.

    Args:
        path: Path to the source file.
        registry: Grammar registry used to parse the content.

    Returns:
        The ParsedFile for path.

    Raises:
        OSError: If the file cannot be read.
        UnsupportedLanguageError: If the extension is not supported.
        ParseError: If the content is not UTF-8 or has syntax errors.
    """
    language = classify(path)
    if language is Language.UNKNOWN:
        raise UnsupportedLanguageError(f"unsupported file type: {path}")
    return parse_source(path.read_bytes(), path, language, registry)


def parse_source(
    content: str | bytes,
    path: Path,
    language: Language,
    registry: GrammarRegistry,
) -> ParsedFile:
    """Parse in-memory source text into a ParsedFile.

    Args:
        content: Source text or raw bytes (decoded as UTF-8).
        path: Path recorded on the ParsedFile. A .tsx suffix selects the
            tsx dialect for TypeScript.
        language: Language of the content.
        registry: Grammar registry used to parse the content.

    Raises:
        UnsupportedLanguageError: If language has no registered grammar.
        ParseError: If the bytes are not UTF-8 or the grammar reports a
            syntax error.
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"not valid UTF-8: {exc.reason}", path) from exc
    else:
        text = content

    try:
        tree = registry.parse(text, language, jsx=path.suffix.lower() == ".tsx")
    except ParseError as exc:
        raise ParseError(exc.message, path) from exc

    return ParsedFile(
        path=path,
        language=language,
        content=text,
        symbols=tuple(extract_symbols(tree, language)),
        line_count=tree.root_node.end_point[0] + 1,
    )


def extract_symbols(tree: Tree, language: Language) -> list[Symbol]:
    """Walk the tree in pre-order and collect symbols.

    Nodes whose name cannot be found are skipped; their children are still
    visited, so nested functions and inner classes are found. Never raises.

    Args:
        tree: A tree produced by GrammarRegistry.parse.
        language: Language the tree was parsed as.

    Returns:
        Symbols in traversal order.
    """
    table = _SYMBOL_TABLE.get(language)
    if table is None:
        return []

    symbols: list[Symbol] = []
    stack: list[Node] = [tree.root_node]
    while stack:
        node = stack.pop()
        kind = table.get(node.type)
        if kind is not None:
            symbol = _make_symbol(node, kind)
            if symbol is not None:
                symbols.append(symbol)
        stack.extend(reversed(node.children))
    return symbols


def _make_symbol(node: Node, kind: SymbolKind) -> Symbol | None:
    """Build a Symbol for node, or None if it has no discoverable name."""
    if kind == SymbolKind.IMPL:
        type_node = node.child_by_field_name("type")
        if type_node is None:
            return None
        name = f"impl {_node_text(type_node)}"
    else:
        name_node = node.child_by_field_name("name")
        if name_node is None and node.type == "arrow_function":
            name_node = _arrow_function_binding(node)
        if name_node is None:
            return None
        name = _node_text(name_node)

    if not name:
        return None

    signature = None
    if kind == SymbolKind.FUNCTION:
        signature = _first_line(_node_text(node))

    return Symbol(
        name=name,
        kind=kind,
        line_start=node.start_point[0] + 1,
        line_end=node.end_point[0] + 1,
        signature=signature,
    )


def _arrow_function_binding(node: Node) -> Node | None:
    """Return the identifier an arrow function is assigned to, if any.

    Handles ``const handler = () => {}``.
    """
    parent = node.parent
    if parent is None or parent.type != "variable_declarator":
        return None
    name_node = parent.child_by_field_name("name")
    if name_node is None or name_node.type != "identifier":
        return None
    value = parent.child_by_field_name("value")
    if value is None or value.id != node.id:
        return None
    return name_node


def _node_text(node: Node) -> str:
    text = node.text
    if text is None:
        return ""
    return text.decode("utf-8", errors="replace")


def _first_line(text: str) -> str:
    return text.split("\n", 1)[0].removesuffix("\r")
