"""In-memory graph store backed by a networkx MultiDiGraph.

Nodes are keyed by node id and carry their GraphNodeData under the
``data`` attribute. Edges are keyed by their EdgeType, so a multigraph
holds at most one edge of each type per ordered (source, target) pair.
"""

from typing import Iterator

import networkx as nx

from repomap.graph.graph_types import EdgeType, GraphEdgeData, GraphNodeData


class CodeGraph:
    """Mutable graph store written by one analysis run.

    Only the graph assembler and the reference resolver write to it;
    callers get a read-only GraphView.
    """

    def __init__(self, repo_id: str):
        self.repo_id = repo_id
        self._graph = nx.MultiDiGraph(repo_id=repo_id)

    def add_node(self, node: GraphNodeData) -> bool:
        """Insert a node unless one with the same id exists. Returns whether it was inserted."""
        if self._graph.has_node(node.node_id):
            return False
        self._graph.add_node(node.node_id, data=node)
        return True

    def has_node(self, node_id: str) -> bool:
        return self._graph.has_node(node_id)

    def get_node(self, node_id: str) -> GraphNodeData | None:
        if not self._graph.has_node(node_id):
            return None
        return self._graph.nodes[node_id]["data"]

    def has_edge(self, source_id: str, target_id: str, edge_type: EdgeType) -> bool:
        return self._graph.has_edge(source_id, target_id, key=edge_type)

    def add_edge(self, edge: GraphEdgeData) -> None:
        self._graph.add_edge(edge.source_id, edge.target_id, key=edge.type, data=edge)

    def nodes(self) -> Iterator[GraphNodeData]:
        for _, data in self._graph.nodes(data="data"):
            yield data

    def edges(self) -> Iterator[GraphEdgeData]:
        for _, _, data in self._graph.edges(data="data"):
            yield data

    def number_of_nodes(self) -> int:
        return self._graph.number_of_nodes()

    def number_of_edges(self) -> int:
        return self._graph.number_of_edges()

    def successors(self, node_id: str, edge_type: EdgeType | None = None) -> list[str]:
        """Ids of nodes reachable over one outgoing edge (of ``edge_type``, if given)."""
        return [
            target
            for _, target, key in self._graph.out_edges(node_id, keys=True)
            if edge_type is None or key == edge_type
        ]

    def view(self) -> "GraphView":
        return GraphView(self)


class GraphView:
    """Read-only view over a CodeGraph.

    Example:
        view = result.graph
        for node in view.get_nodes():
            print(node.type, node.name)
    """

    def __init__(self, graph: CodeGraph):
        self._graph = graph

    @property
    def repo_id(self) -> str:
        return self._graph.repo_id

    def get_nodes(self) -> list[GraphNodeData]:
        return list(self._graph.nodes())

    def get_edges(self) -> list[GraphEdgeData]:
        return list(self._graph.edges())

    def number_of_nodes(self) -> int:
        return self._graph.number_of_nodes()

    def number_of_edges(self) -> int:
        return self._graph.number_of_edges()

    def get_node(self, node_id: str) -> GraphNodeData | None:
        return self._graph.get_node(node_id)

    def has_node(self, node_id: str) -> bool:
        return self._graph.has_node(node_id)

    def successors(self, node_id: str, edge_type: EdgeType | None = None) -> list[str]:
        return self._graph.successors(node_id, edge_type)
