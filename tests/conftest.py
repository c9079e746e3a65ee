"""Pytest configuration and fixtures for tsgraph CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from tsgraph_cli.attention import AttentionWalker


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch):
    """Point the config file at an empty location so a user config never leaks into tests."""
    monkeypatch.setattr("tsgraph_cli.config.CONFIG_FILE", tmp_path / "tsgraph-home" / "config.toml")
    monkeypatch.delenv("TSGRAPH_LOG_LEVEL", raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample TypeScript project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture(scope="session")
def ts_parser():
    """A TypeScriptParser with both grammars loaded; skips when they are not installed."""
    pytest.importorskip("tree_sitter")
    pytest.importorskip("tree_sitter_typescript")
    from tsgraph_cli.parser import TypeScriptParser

    parser = TypeScriptParser()
    if not parser.supports_language("tsx"):
        pytest.skip("tree-sitter tsx grammar could not be loaded")
    return parser


@pytest.fixture
def walk(ts_parser) -> Callable[[str], AttentionWalker]:
    """Parse TSX source and return a walker that has already visited every node."""

    def _walk(source: str) -> AttentionWalker:
        walker = AttentionWalker(ts_parser.flatten_source(source, "tsx"))
        walker.walk()
        return walker

    return _walk
