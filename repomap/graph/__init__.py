"""Code graph building and management.

This package provides the classes that turn extracted tags into a code
graph of a repository.

Main components:
  - SymbolIndex: Run-scoped tables of definitions, exports and import aliases
  - GraphAssembler: Folder hierarchy, File nodes, definition nodes, CONTAINS edges
  - ReferenceResolver: Second pass adding reference nodes and REFERENCES edges
  - CodeGraph / GraphView: networkx-backed graph store and its read-only view
  - Graph types: GraphNodeData, GraphEdgeData, NodeType, EdgeType

RepoGraphBuilder, which drives all of them over a repository, lives in
repomap.graph.repo_graph_builder.
"""

from repomap.graph.code_graph import CodeGraph, GraphView
from repomap.graph.context import AnalysisContext
from repomap.graph.graph_assembler import GraphAssembler
from repomap.graph.graph_types import EdgeType, GraphEdgeData, GraphNodeData, NodeType
from repomap.graph.reference_resolver import ReferenceResolver, ResolutionStats
from repomap.graph.symbol_index import SymbolIndex, SymbolIndexFrozenError

__all__ = [
    "AnalysisContext",
    "CodeGraph",
    "EdgeType",
    "GraphAssembler",
    "GraphEdgeData",
    "GraphNodeData",
    "GraphView",
    "NodeType",
    "ReferenceResolver",
    "ResolutionStats",
    "SymbolIndex",
    "SymbolIndexFrozenError",
]
