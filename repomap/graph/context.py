"""State of one analysis run.

Everything a run accumulates lives on one AnalysisContext: the symbol
index, the graph store, the folder memo table and the buffered reference
tags. A context is created when a run starts and discarded with it, so
two runs never share state.
"""

import posixpath
from dataclasses import dataclass, field
from pathlib import Path

from repomap.graph.code_graph import CodeGraph
from repomap.graph.helpers.utils import generate_node_id, repository_disambiguator
from repomap.graph.symbol_index import SymbolIndex
from repomap.models.graph.indexing_stats import IndexingStats
from repomap.parser.tags import Tag


@dataclass
class AnalysisContext:
    repo_id: str
    repo_root: Path
    symbol_index: SymbolIndex = field(default_factory=SymbolIndex)
    graph: CodeGraph | None = None
    folder_cache: dict[str, str] = field(default_factory=dict)
    reference_buffer: list[Tag] = field(default_factory=list)
    stats: IndexingStats = field(default_factory=IndexingStats)

    def __post_init__(self):
        self.repo_root = Path(self.repo_root).resolve()
        if self.graph is None:
            self.graph = CodeGraph(self.repo_id)

    @property
    def root_node_id(self) -> str:
        return generate_node_id(self.repo_id, repository_disambiguator())

    def absolute_path(self, relative_path: str) -> str:
        """Absolute POSIX path of a repo-relative file."""
        return (self.repo_root / relative_path).as_posix()

    def relative_path(self, path: Path | str) -> str:
        """Repo-relative, normalized POSIX path of an absolute or relative path.

        Raises:
            ValueError: If the path points outside the repository root
        """
        path = Path(path)
        if path.is_absolute():
            path = path.resolve().relative_to(self.repo_root)
        normalized = posixpath.normpath(path.as_posix())
        if normalized == ".." or normalized.startswith("../"):
            raise ValueError(f"{path} is outside the repository root")
        return normalized
