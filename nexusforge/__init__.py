"""Tree-sitter symbol indexing and relevance search for LLM prompt context."""

__version__ = "0.1.0"
