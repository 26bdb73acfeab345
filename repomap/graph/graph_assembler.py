"""Assembling the code graph for a repository.

This module turns folders, files and definition tags into graph nodes and
CONTAINS edges. Reference tags are not turned into nodes here; they are
buffered on the run's AnalysisContext and handled by the ReferenceResolver
once every file has been extracted.

In the code graph, we have the following node types:
  * Repository: the synthetic root node, one per run
  * Folder: a directory below the repository root
  * File: a source file
  * Class / Function / Method / Variable / TypeAlias: definitions
  * FunctionCall / MethodCall / ConstructorCall: references (added by the resolver)

And the following edge types:
  * CONTAINS: Repository -> Folder -> ... -> File -> definition / reference
  * REFERENCES: reference -> definition (added by the resolver)

Every node id is a digest of the repo id and a disambiguator, so adding
the same folder, file or definition twice always lands on the same node.
"""

import logging
from pathlib import PurePosixPath
from typing import Iterable

from repomap.graph.context import AnalysisContext
from repomap.graph.graph_types import EdgeType, GraphEdgeData, GraphNodeData, NodeType
from repomap.graph.helpers.utils import (
    definition_disambiguator,
    file_disambiguator,
    folder_disambiguator,
    generate_node_id,
)
from repomap.parser.tags import Tag

logger = logging.getLogger(__name__)

ROOT_FOLDER = "."


class GraphAssembler:
    """Writes structural nodes, definition nodes and CONTAINS edges into a run's graph.

    Example:
        context = AnalysisContext(repo_id="my-repo", repo_root=Path("/path/to/repo"))
        assembler = GraphAssembler(context)
        file_id = assembler.add_file_node("src/utils/math.ts")
        assembler.add_definitions(file_id, tags)
    """

    def __init__(self, context: AnalysisContext):
        self.context = context

    @property
    def graph(self):
        return self.context.graph

    def ensure_repository_root(self) -> str:
        """Create the synthetic repository-root node on first use and return its id."""
        node_id = self.context.folder_cache.get(ROOT_FOLDER)
        if node_id is not None:
            return node_id

        node_id = self.context.root_node_id
        self.graph.add_node(
            GraphNodeData(
                node_id=node_id,
                repo_id=self.context.repo_id,
                name=self.context.repo_root.name or self.context.repo_id,
                type=NodeType.repository,
                file_path=ROOT_FOLDER,
                is_directory=True,
            )
        )
        self.context.folder_cache[ROOT_FOLDER] = node_id
        return node_id

    def ensure_folder_node(self, folder_path: str) -> str:
        """Return the node id of a folder, creating it and its missing ancestors.

        The walk goes from the repository root down to the folder, one path
        segment at a time. Each segment is looked up in the folder cache;
        missing ones get a node and a single CONTAINS edge from their parent.
        Calling this again with the same path creates nothing.

        Args:
            folder_path: Repo-relative folder path with POSIX separators
                ("" or "." for the repository root)

        Returns:
            Node id of the folder
        """
        folder = PurePosixPath(folder_path or ROOT_FOLDER)
        key = folder.as_posix()

        cached = self.context.folder_cache.get(key)
        if cached is not None:
            return cached

        parent_id = self.ensure_repository_root()
        current = PurePosixPath()
        for part in folder.parts:
            current = current / part
            current_key = current.as_posix()

            node_id = self.context.folder_cache.get(current_key)
            if node_id is None:
                node_id = generate_node_id(self.context.repo_id, folder_disambiguator(current_key))
                inserted = self.graph.add_node(
                    GraphNodeData(
                        node_id=node_id,
                        repo_id=self.context.repo_id,
                        name=part,
                        type=NodeType.folder,
                        file_path=current_key,
                        is_directory=True,
                    )
                )
                if inserted:
                    self.context.stats.total_folders += 1
                self.context.folder_cache[current_key] = node_id
                self.add_unique_edge(parent_id, node_id, EdgeType.contains)

            parent_id = node_id

        return parent_id

    def add_unique_edge(self, source_id: str, target_id: str, edge_type: EdgeType) -> bool:
        """Insert an edge unless it (or, for CONTAINS, its reverse) already exists.

        Returns:
            True if an edge was inserted
        """
        if source_id == target_id:
            return False
        if self.graph.has_edge(source_id, target_id, edge_type):
            return False
        if edge_type is EdgeType.contains and self.graph.has_edge(target_id, source_id, edge_type):
            logger.debug(f"Refusing reverse CONTAINS edge {source_id} -> {target_id}")
            return False

        self.graph.add_edge(
            GraphEdgeData(
                source_id=source_id,
                target_id=target_id,
                type=edge_type,
                repo_id=self.context.repo_id,
            )
        )
        return True

    def file_node_id(self, relative_path: str) -> str:
        return generate_node_id(self.context.repo_id, file_disambiguator(relative_path))

    def add_file_node(
        self,
        relative_path: str,
        size: int | None = None,
        created_at: float | None = None,
        modified_at: float | None = None,
    ) -> str:
        """Create the File node for a repo-relative path under its folder.

        Returns:
            Node id of the file
        """
        path = PurePosixPath(relative_path)
        folder_id = self.ensure_folder_node(path.parent.as_posix())

        node_id = self.file_node_id(path.as_posix())
        self.graph.add_node(
            GraphNodeData(
                node_id=node_id,
                repo_id=self.context.repo_id,
                name=path.name,
                type=NodeType.file,
                file_path=path.as_posix(),
                is_directory=False,
                size=size,
                created_at=created_at,
                modified_at=modified_at,
            )
        )
        self.add_unique_edge(folder_id, node_id, EdgeType.contains)
        return node_id

    def definition_node_id(self, relative_path: str, name: str, start_line: int) -> str:
        absolute_path = self.context.absolute_path(relative_path)
        return generate_node_id(
            self.context.repo_id,
            definition_disambiguator(absolute_path, name, start_line),
        )

    def add_definitions(self, file_node_id: str, tags: Iterable[Tag]) -> int:
        """Turn the definition tags of one file into nodes; buffer its reference tags.

        Each definition becomes a node contained by the File node and is
        recorded in the run's symbol index. Reference tags are appended to
        the reference buffer in order.

        Returns:
            Number of definition nodes created
        """
        created = 0
        for tag in tags:
            if tag.is_reference:
                self.context.reference_buffer.append(tag)
                self.context.stats.total_references += 1
                continue

            node_id = self.definition_node_id(tag.file_path, tag.name, tag.start_line)
            inserted = self.graph.add_node(
                GraphNodeData(
                    node_id=node_id,
                    repo_id=self.context.repo_id,
                    name=tag.name,
                    type=NodeType.from_tag_type(tag.type),
                    file_path=tag.file_path,
                    start_line=tag.start_line,
                    end_line=tag.end_line,
                    text=tag.text,
                    is_reference=False,
                    tag_type=tag.type,
                )
            )
            self.add_unique_edge(file_node_id, node_id, EdgeType.contains)
            self.context.symbol_index.record_definition(tag.name, tag.type, tag.file_path, tag.start_line)
            if inserted:
                created += 1

        self.context.stats.total_definitions += created
        return created
