"""
Reference resolver for REFERENCES relationships.

This module runs as a second pass, after every file of a run has been
extracted and all definition nodes exist. For each buffered reference tag
it:
  1. Maps the reference type onto the definition types it may point at
       functionCall    -> function
       constructorCall -> class
       methodCall      -> staticMethod "<receiver>.<name>", then method,
                          then privateMethod
  2. Undoes import aliasing (`import { a as b }`, default imports) when the
     alias points at the file the reference was resolved to
  3. Looks the candidates up in the symbol index, preferring the
     reference's target file
  4. Creates the reference node under its File node (CONTAINS) and links it
     to the definition node (REFERENCES)

Design principles:
  - Name-based: the last recorded definition of a name wins when the
    target file is unknown; no lexical scope analysis
  - Non-fatal: every gap is counted, nothing is raised
  - Deduplicated: one reference node per (file, name, line) and at most one
    REFERENCES edge per pair
"""

import logging
from dataclasses import dataclass

from repomap.graph.context import AnalysisContext
from repomap.graph.graph_assembler import GraphAssembler
from repomap.graph.graph_types import EdgeType, GraphNodeData, NodeType
from repomap.graph.helpers.utils import generate_node_id, reference_disambiguator
from repomap.graph.symbol_index import SymbolLocation
from repomap.parser.tags import Tag, TagType

logger = logging.getLogger(__name__)


@dataclass
class ResolutionStats:
    """Counters of one resolution pass.

    Attributes:
        resolved: References linked to a definition node.
        unresolved: References whose name matched no recorded definition.
        missing_file_nodes: References whose File node does not exist.
        missing_definition_nodes: References whose definition was recorded
            but has no node.
        edges_created: REFERENCES edges inserted (duplicates excluded).
    """
    resolved: int = 0
    unresolved: int = 0
    missing_file_nodes: int = 0
    missing_definition_nodes: int = 0
    edges_created: int = 0

    @property
    def orphaned(self) -> int:
        return self.missing_file_nodes + self.missing_definition_nodes


@dataclass(frozen=True)
class _Candidate:
    name: str
    type: TagType


class ReferenceResolver:
    """Resolves buffered reference tags into reference nodes and REFERENCES edges.

    Example:
        resolver = ReferenceResolver(context, assembler)
        stats = resolver.resolve()
        print(stats.resolved, stats.unresolved, stats.orphaned)
    """

    def __init__(self, context: AnalysisContext, assembler: GraphAssembler | None = None):
        self.context = context
        self.assembler = assembler or GraphAssembler(context)

    @property
    def symbol_index(self):
        return self.context.symbol_index

    def resolve(self) -> ResolutionStats:
        """Resolve every buffered reference of the run.

        Freezes the symbol index first: the index must not change while
        references are being matched against it.
        """
        self.symbol_index.freeze()
        stats = ResolutionStats()

        for tag in self.context.reference_buffer:
            self._resolve_one(tag, stats)

        self.context.stats.resolved_references += stats.resolved
        self.context.stats.unresolved_references += stats.unresolved
        self.context.stats.orphaned_references += stats.orphaned

        logger.debug(
            f"Resolved {stats.resolved}/{len(self.context.reference_buffer)} references "
            f"({stats.unresolved} unresolved, {stats.orphaned} orphaned, "
            f"{stats.edges_created} edges)"
        )
        return stats

    def _resolve_one(self, tag: Tag, stats: ResolutionStats) -> None:
        found = self.find_definition(tag)
        if found is None:
            stats.unresolved += 1
            return
        definition_name, location = found

        file_node_id = self.assembler.file_node_id(tag.file_path)
        if not self.context.graph.has_node(file_node_id):
            logger.debug(f"No file node for reference {tag.name} in {tag.file_path}")
            stats.missing_file_nodes += 1
            return

        reference_id = self._ensure_reference_node(tag, file_node_id)

        definition_id = self.assembler.definition_node_id(location.file, definition_name, location.line)
        if not self.context.graph.has_node(definition_id):
            logger.debug(f"No definition node for {definition_name} at {location.file}:{location.line}")
            stats.missing_definition_nodes += 1
            return

        if self.assembler.add_unique_edge(reference_id, definition_id, EdgeType.references):
            stats.edges_created += 1
        stats.resolved += 1

    def find_definition(self, tag: Tag) -> tuple[str, SymbolLocation] | None:
        """Find the definition a reference tag points at.

        Returns:
            (definition name, location) of the first matching candidate, or None
        """
        for candidate in self.candidates(tag):
            location = self.symbol_index.lookup_definition(
                candidate.name,
                candidate.type,
                prefer_file=tag.target_file,
            )
            if location is not None:
                return candidate.name, location
        return None

    def candidates(self, tag: Tag) -> list[_Candidate]:
        match tag.type:
            case TagType.function_call:
                return [_Candidate(self._unalias(tag.name, tag.target_file), TagType.function)]
            case TagType.constructor_call:
                return [_Candidate(self._unalias(tag.name, tag.target_file), TagType.class_)]
            case TagType.method_call:
                candidates = []
                if tag.receiver:
                    receiver = self._unalias(tag.receiver, tag.target_file)
                    candidates.append(_Candidate(f"{receiver}.{tag.name}", TagType.static_method))
                candidates.append(_Candidate(tag.name, TagType.method))
                candidates.append(_Candidate(tag.name, TagType.private_method))
                return candidates
            case _:
                return []

    def _unalias(self, local_name: str, target_file: str | None) -> str:
        """Map an imported local name back to the name its source file defines."""
        if target_file is None:
            return local_name
        alias = self.symbol_index.lookup_alias(local_name)
        if alias is None or alias.source_file != target_file:
            return local_name
        if alias.exported_name == "default":
            return self.symbol_index.default_exports.get(target_file, local_name)
        return alias.exported_name

    def _ensure_reference_node(self, tag: Tag, file_node_id: str) -> str:
        node_id = generate_node_id(
            self.context.repo_id,
            reference_disambiguator(self.context.absolute_path(tag.file_path), tag.name, tag.start_line),
        )
        self.context.graph.add_node(
            GraphNodeData(
                node_id=node_id,
                repo_id=self.context.repo_id,
                name=tag.name,
                type=NodeType.from_tag_type(tag.type),
                file_path=tag.file_path,
                start_line=tag.start_line,
                end_line=tag.end_line,
                text=tag.text,
                is_reference=True,
                tag_type=tag.type,
            )
        )
        self.assembler.add_unique_edge(file_node_id, node_id, EdgeType.contains)
        return node_id
