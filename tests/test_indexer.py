"""Tests for directory indexing."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from nexusforge.errors import GrammarInitError
from nexusforge.indexer import index_directory, index_file
from nexusforge.languages import Language
from nexusforge.registry import GrammarRegistry

GOOD_PYTHON = "def ok():\n    return 1\n"
BAD_PYTHON = "def broken(:\n    pass\n"


class TestIndexDirectory:
    """Tests for index_directory."""

    def test_indexes_sample_repo(
        self, sample_repo: Path, registry: GrammarRegistry
    ) -> None:
        result = index_directory(sample_repo, registry=registry)
        assert result.files_indexed == 4
        assert result.files_skipped == 0
        assert result.errors == []
        assert {pf.path for pf in result.files} == {
            Path("src/main.rs"),
            Path("src/greeter.py"),
            Path("web/calc.js"),
            Path("web/shapes.ts"),
        }
        assert result.total_lines == sum(pf.line_count for pf in result.files)
        assert result.time_taken >= 0

    def test_aggregates_symbol_counts(
        self, sample_repo: Path, registry: GrammarRegistry
    ) -> None:
        counts = index_directory(sample_repo, registry=registry).symbols
        # rust: main, new; python: greet, main; js: add, multiply, double; ts: area
        assert counts.functions == 8
        # User, Greeter, Calculator, Square
        assert counts.types == 4
        assert counts.impls == 1
        assert counts.traits == 1
        assert counts.type_aliases == 1
        assert counts.total == 15

    def test_rust_main_and_struct(
        self, rust_user_repo: Path, registry: GrammarRegistry
    ) -> None:
        result = index_directory(rust_user_repo, registry=registry)
        assert result.files_indexed == 1
        assert result.symbols.functions == 1
        assert result.symbols.types == 1

    def test_typescript_dialect_follows_extension(
        self, tmp_path: Path, registry: GrammarRegistry
    ) -> None:
        (tmp_path / "util.ts").write_text(
            "function cast(v: unknown) { return <string>v; }\n", encoding="utf-8"
        )
        (tmp_path / "App.tsx").write_text(
            "export const App = () => <div>hi</div>;\n", encoding="utf-8"
        )
        result = index_directory(tmp_path, registry=registry)
        assert result.errors == []
        assert [pf.path for pf in result.files] == [Path("App.tsx"), Path("util.ts")]

    @pytest.mark.parametrize(
        ("good", "bad"),
        [
            (["b.py", "c.py"], ["a.py"]),
            (["a.py", "c.py"], ["b.py"]),
            (["a.py", "b.py"], ["c.py"]),
            (["a.py"], ["b.py", "c.py", "d.py"]),
        ],
    )
    def test_malformed_files_skipped_wherever_they_are(
        self,
        tmp_path: Path,
        registry: GrammarRegistry,
        good: list[str],
        bad: list[str],
    ) -> None:
        for name in good:
            (tmp_path / name).write_text(GOOD_PYTHON, encoding="utf-8")
        for name in bad:
            (tmp_path / name).write_text(BAD_PYTHON, encoding="utf-8")
        result = index_directory(tmp_path, registry=registry)
        assert result.files_indexed == len(good)
        assert result.files_skipped == len(bad)
        assert len(result.errors) == len(bad)
        assert sorted(path.name for path, _ in result.errors) == sorted(bad)

    def test_skipped_files_excluded_from_totals(
        self, tmp_path: Path, registry: GrammarRegistry
    ) -> None:
        (tmp_path / "good.py").write_text(GOOD_PYTHON, encoding="utf-8")
        (tmp_path / "bad.py").write_text(BAD_PYTHON * 50, encoding="utf-8")
        result = index_directory(tmp_path, registry=registry)
        assert result.total_lines == result.files[0].line_count
        assert result.symbols.functions == 1

    def test_invalid_utf8_skipped(
        self, tmp_path: Path, registry: GrammarRegistry
    ) -> None:
        (tmp_path / "latin1.py").write_bytes(b"name = '\xe9t\xe9'\n")
        (tmp_path / "ok.py").write_text(GOOD_PYTHON, encoding="utf-8")
        result = index_directory(tmp_path, registry=registry)
        assert result.files_indexed == 1
        assert result.errors[0][0] == Path("latin1.py")
        assert "UTF-8" in result.errors[0][1]

    def test_oversized_file_skipped(
        self, tmp_path: Path, registry: GrammarRegistry
    ) -> None:
        (tmp_path / "small.py").write_text("x = 1\n", encoding="utf-8")
        (tmp_path / "large.py").write_text("y = 2\n" * 1000, encoding="utf-8")
        result = index_directory(tmp_path, registry=registry, max_file_size=100)
        assert [pf.path for pf in result.files] == [Path("small.py")]
        assert result.errors == [(Path("large.py"), "skipped (>100 bytes)")]

    def test_unreadable_file_skipped(
        self, tmp_path: Path, registry: GrammarRegistry
    ) -> None:
        (tmp_path / "a.py").write_text(GOOD_PYTHON, encoding="utf-8")
        (tmp_path / "b.py").write_text(GOOD_PYTHON, encoding="utf-8")
        original = Path.read_bytes

        def flaky_read(self: Path) -> bytes:
            if self.name == "a.py":
                raise PermissionError(13, "Permission denied")
            return original(self)

        with patch.object(Path, "read_bytes", flaky_read):
            result = index_directory(tmp_path, registry=registry)
        assert result.files_indexed == 1
        assert result.errors == [(Path("a.py"), "Permission denied")]

    def test_programming_error_not_swallowed(
        self, tmp_path: Path, registry: GrammarRegistry
    ) -> None:
        (tmp_path / "a.py").write_text(GOOD_PYTHON, encoding="utf-8")
        with patch("nexusforge.indexer.parse_source", side_effect=TypeError("bug")):
            with pytest.raises(TypeError):
                index_directory(tmp_path, registry=registry)

    def test_unsupported_registry_language_skipped_silently(
        self, sample_repo: Path
    ) -> None:
        only_rust = GrammarRegistry(languages=(Language.RUST,))
        result = index_directory(sample_repo, registry=only_rust)
        assert [pf.path for pf in result.files] == [Path("src/main.rs")]
        assert result.errors == []

    def test_language_filter(
        self, sample_repo: Path, registry: GrammarRegistry
    ) -> None:
        result = index_directory(
            sample_repo, registry=registry, language_filter=Language.PYTHON
        )
        assert [pf.path for pf in result.files] == [Path("src/greeter.py")]

    def test_empty_directory(self, tmp_path: Path, registry: GrammarRegistry) -> None:
        result = index_directory(tmp_path, registry=registry)
        assert result.files_indexed == 0
        assert result.files_skipped == 0
        assert result.symbols.total == 0

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            index_directory(tmp_path / "nope")

    def test_file_root_raises(self, tmp_path: Path) -> None:
        f = tmp_path / "a.py"
        f.write_text("pass", encoding="utf-8")
        with pytest.raises(NotADirectoryError):
            index_directory(f)

    def test_grammar_failure_aborts(self, sample_repo: Path) -> None:
        with patch(
            "nexusforge.registry.get_parser", side_effect=LookupError("missing")
        ):
            with pytest.raises(GrammarInitError):
                index_directory(sample_repo)


class TestIndexFile:
    """Tests for the per-file helper shared with the parallel path."""

    def test_returns_parsed_file(
        self, sample_repo: Path, registry: GrammarRegistry
    ) -> None:
        parsed, warning = index_file(
            sample_repo, Path("src/main.rs"), Language.RUST, registry
        )
        assert warning is None
        assert parsed is not None
        assert parsed.path == Path("src/main.rs")

    def test_missing_file_reports_warning(
        self, sample_repo: Path, registry: GrammarRegistry
    ) -> None:
        parsed, warning = index_file(
            sample_repo, Path("src/gone.rs"), Language.RUST, registry
        )
        assert parsed is None
        assert warning is not None
