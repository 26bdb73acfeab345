"""
Global test configuration and fixtures for code graph tests.

Provides helpers that write small JavaScript/TypeScript repositories into
a temporary directory and fixtures for the pipeline components.
"""

from pathlib import Path
from typing import Callable

import pytest

from repomap.graph.context import AnalysisContext
from repomap.graph.graph_assembler import GraphAssembler
from repomap.graph.symbol_index import SymbolIndex
from repomap.parser.tag_extractor import TagExtractor


@pytest.fixture
def sample_repo_id() -> str:
    """Sample repository identifier."""
    return "repo-123"


@pytest.fixture
def write_repo(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Return a helper writing {relative path: source} into a repository root."""

    def _write(files: dict[str, str]) -> Path:
        root = tmp_path / "repo"
        for relative_path, source in files.items():
            file_path = root / relative_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(source, encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root

    return _write


@pytest.fixture
def symbol_index() -> SymbolIndex:
    """Create an empty SymbolIndex."""
    return SymbolIndex()


@pytest.fixture
def extractor(symbol_index) -> TagExtractor:
    """Create a TagExtractor bound to the symbol_index fixture."""
    return TagExtractor(symbol_index)


@pytest.fixture
def context(tmp_path, sample_repo_id) -> AnalysisContext:
    """Create an AnalysisContext rooted in a temporary directory."""
    return AnalysisContext(repo_id=sample_repo_id, repo_root=tmp_path)


@pytest.fixture
def assembler(context) -> GraphAssembler:
    """Create a GraphAssembler writing into the context fixture."""
    return GraphAssembler(context)
