"""Shared test fixtures for nexusforge."""

from __future__ import annotations

from pathlib import Path

import pytest

from nexusforge.languages import Language
from nexusforge.models import ParsedFile, Symbol, SymbolKind, source_lines
from nexusforge.registry import GrammarRegistry

RUST_SOURCE = """\
fn main() {
    println!("Hello");
}

struct User {
    name: String,
}

impl User {
    fn new(name: String) -> Self {
        Self { name }
    }
}
"""

PYTHON_SOURCE = '''\
class Greeter:
    """A simple greeter."""

    def greet(self, name: str) -> str:
        return f"Hello, {name}!"


def main() -> None:
    g = Greeter()
    g.greet("world")
'''

JAVASCRIPT_SOURCE = """\
function add(a, b) {
  return a + b;
}

class Calculator {
  multiply(a, b) {
    return a * b;
  }
}

const double = (x) => x * 2;
[1, 2].map((y) => y + 1);
"""

TYPESCRIPT_SOURCE = """\
interface Shape {
  area(): number;
}

type ShapeId = string | number;

class Square implements Shape {
  area(): number {
    return 1;
  }
}
"""


@pytest.fixture(autouse=True)
def _isolated_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Point config lookup at a file that does not exist."""
    missing = tmp_path_factory.mktemp("config") / "config.toml"
    monkeypatch.setenv("NEXUS_CONFIG", str(missing))


@pytest.fixture(scope="session")
def registry() -> GrammarRegistry:
    return GrammarRegistry()


@pytest.fixture()
def sample_repo(tmp_path: Path) -> Path:
    """Create a small repo with one file per supported language."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "main.rs").write_text(RUST_SOURCE, encoding="utf-8")
    (src / "greeter.py").write_text(PYTHON_SOURCE, encoding="utf-8")
    web = tmp_path / "web"
    web.mkdir()
    (web / "calc.js").write_text(JAVASCRIPT_SOURCE, encoding="utf-8")
    (web / "shapes.ts").write_text(TYPESCRIPT_SOURCE, encoding="utf-8")
    (tmp_path / "README.md").write_text("# sample\n", encoding="utf-8")
    return tmp_path


@pytest.fixture()
def rust_user_repo(tmp_path: Path) -> Path:
    """A directory with one Rust file holding fn main and struct User."""
    (tmp_path / "main.rs").write_text(
        "fn main() {}\n\nstruct User {\n    name: String,\n}\n",
        encoding="utf-8",
    )
    return tmp_path


def make_parsed_file(
    path: str,
    content: str,
    symbols: list[Symbol],
    language: Language = Language.RUST,
) -> ParsedFile:
    """Build a ParsedFile by hand for search and context tests."""
    return ParsedFile(
        path=Path(path),
        language=language,
        content=content,
        symbols=tuple(symbols),
        line_count=max(len(source_lines(content)), 1),
    )


def make_symbol(
    name: str,
    kind: SymbolKind = SymbolKind.FUNCTION,
    line_start: int = 1,
    line_end: int = 1,
    signature: str | None = None,
) -> Symbol:
    return Symbol(
        name=name,
        kind=kind,
        line_start=line_start,
        line_end=line_end,
        signature=signature,
    )
