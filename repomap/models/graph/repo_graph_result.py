from dataclasses import dataclass

from repomap.graph.code_graph import GraphView
from repomap.models.graph.indexing_stats import IndexingStats


@dataclass
class RepoGraphResult:
    """Result of building a repository code graph.

    Attributes:
        root_node_id: Id of the synthetic Repository node.
        graph: Read-only view of all nodes and edges.
        stats: Statistics about the analysis run.
    """
    root_node_id: str
    graph: GraphView
    stats: IndexingStats

    def summary(self) -> dict[str, int]:
        return {
            "nodes": self.graph.number_of_nodes(),
            "edges": self.graph.number_of_edges(),
            "files_indexed": self.stats.indexed_files,
            "files_skipped": self.stats.skipped_files,
            "files_failed": self.stats.failed_files,
            "definitions": self.stats.total_definitions,
            "references": self.stats.total_references,
            "references_resolved": self.stats.resolved_references,
            "references_unresolved": self.stats.unresolved_references,
            "references_orphaned": self.stats.orphaned_references,
        }
