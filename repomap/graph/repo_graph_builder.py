"""Building the code graph for an entire repository.

This module constructs a complete code graph from a repository by:
  1. Walking the directory tree and collecting supported source files.
  2. Extracting tags from each file with the TagExtractor.
  3. Turning folders, files and definitions into nodes and CONTAINS edges
     via the GraphAssembler, recording definitions in the SymbolIndex and
     buffering references.
  4. Resolving the buffered references once every file has been processed
     (ReferenceResolver), which adds reference nodes and REFERENCES edges.

Because references are resolved in a second pass, a call may refer to a
definition in a file that is scanned later.

Files above the configured size limit are skipped; they are typically
generated code or minified bundles. Files that fail to parse keep their
File node but contribute no definitions or references.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

from repomap.core.config import settings
from repomap.graph.context import AnalysisContext
from repomap.graph.graph_assembler import GraphAssembler
from repomap.graph.reference_resolver import ReferenceResolver
from repomap.models.graph.repo_graph_result import RepoGraphResult
from repomap.parser import tree_sitter_parser
from repomap.parser.exceptions import FileAccessError, ParseError, UnsupportedLanguageError
from repomap.parser.tag_extractor import TagExtractor
from repomap.utils.logging import Logger

logger = logging.getLogger(__name__)


class GraphBuildRun:
    """One analysis run: feed it files with `ingest_file()`, then call `finish()` once.

    All state of the run lives on its AnalysisContext, so a run can be
    driven by a synchronous directory walk or by an async caller that reads
    file contents itself.

    Example:
        run = builder.start_run()
        for path in paths:
            run.ingest_file(path, path.read_bytes())
        result = run.finish()
    """

    def __init__(
        self,
        repo_id: str,
        repo_root: Path,
        max_file_size_bytes: int,
        max_tree_depth: int,
        include_reference_text: bool,
    ):
        self.context = AnalysisContext(repo_id=repo_id, repo_root=repo_root)
        self.assembler = GraphAssembler(self.context)
        self.extractor = TagExtractor(
            self.context.symbol_index,
            max_depth=max_tree_depth,
            include_reference_text=include_reference_text,
        )
        self.max_file_size_bytes = max_file_size_bytes
        self.logger = Logger(__name__, {"repo_id": repo_id})
        self._finished = False

        self.assembler.ensure_repository_root()

    @property
    def stats(self):
        return self.context.stats

    def ingest_file(
        self,
        path: Path | str,
        content: bytes,
        created_at: float | None = None,
        modified_at: float | None = None,
    ) -> bool:
        """Extract one file and add its File node and definitions to the graph.

        Args:
            path: Absolute path, or path relative to the repository root
            content: Raw file content
            created_at: Optional creation timestamp of the file
            modified_at: Optional modification timestamp of the file

        Returns:
            True if the file was indexed, False if it was skipped or failed to parse
        """
        if self._finished:
            raise RuntimeError("Cannot ingest files after the run has finished")

        self.stats.total_files += 1

        try:
            relative_path = self.context.relative_path(path)
        except ValueError:
            self._skip(f"Skipping file outside repository root: {path}")
            return False

        # Paths handed in by callers are re-checked against the allowlist
        if not tree_sitter_parser.support_file(relative_path):
            self.stats.skipped_files += 1
            self.logger.debug(f"Skipping unsupported file {relative_path}")
            return False

        if len(content) > self.max_file_size_bytes:
            self._skip(
                f"Skipping large file {relative_path}: "
                f"{len(content)} bytes > {self.max_file_size_bytes} bytes"
            )
            return False

        file_node_id = self.assembler.add_file_node(
            relative_path,
            size=len(content),
            created_at=created_at,
            modified_at=modified_at,
        )

        try:
            tags = self.extractor.extract(content, relative_path)
        except UnsupportedLanguageError as e:
            self.stats.skipped_files += 1
            self.logger.debug(str(e))
            return False
        except ParseError as e:
            self.logger.warning(f"Failed to parse {relative_path}: {e}")
            self.stats.failed_files += 1
            self.stats.errors.append(f"Failed to parse {relative_path}: {e}")
            return False

        created = self.assembler.add_definitions(file_node_id, tags)
        self.stats.indexed_files += 1
        self.logger.debug(f"Indexed {relative_path}: {created} definitions, {len(tags) - created} other tags")
        return True

    def skip_file(self, error: FileAccessError) -> None:
        """Count a file that could not be read and move on."""
        self.stats.total_files += 1
        self._skip(str(error))

    def _skip(self, message: str) -> None:
        self.logger.warning(message)
        self.stats.skipped_files += 1
        self.stats.errors.append(message)

    def finish(self) -> RepoGraphResult:
        """Resolve buffered references and return the finished graph.

        Returns:
            RepoGraphResult containing the root node id, a read-only view of
            the graph and the run statistics
        """
        if self._finished:
            raise RuntimeError("Run has already finished")
        self._finished = True

        resolution = ReferenceResolver(self.context, self.assembler).resolve()

        result = RepoGraphResult(
            root_node_id=self.context.root_node_id,
            graph=self.context.graph.view(),
            stats=self.stats,
        )
        self.logger.info(
            f"Finished building repo graph: "
            f"{self.stats.indexed_files} files indexed, "
            f"{self.stats.total_definitions} definitions, "
            f"{resolution.resolved}/{self.stats.total_references} references resolved, "
            f"{self.stats.skipped_files} skipped, "
            f"{self.stats.failed_files} failed"
        )
        return result


class RepoGraphBuilder:
    """Builds a complete code graph from a repository.

    This class orchestrates the construction of a code graph by:
      1. Walking the repository directory tree (`scan()`).
      2. Reading each supported file and handing it to a GraphBuildRun.
      3. Finishing the run, which resolves references across files.

    The builder supports excluding directories and files from the walk and
    tracks statistics about the run.

    Example:
        builder = RepoGraphBuilder(
            repo_id="my-repo-123",
            repo_root=Path("/path/to/repo"),
        )
        result = builder.build()
        # result.graph.get_nodes(), result.graph.get_edges()
    """

    def __init__(
        self,
        repo_id: str,
        repo_root: Path | str,
        excluded_dirs: frozenset[str] | None = None,
        excluded_files: frozenset[str] | None = None,
        max_file_size_bytes: int | None = None,
        max_tree_depth: int | None = None,
        include_reference_text: bool | None = None,
    ):
        """Initialize the RepoGraphBuilder.

        Args:
            repo_id: Unique identifier for the repository, part of every node id.
            repo_root: Path to the root directory of the repository.
            excluded_dirs: Directory names never walked into. Defaults to
                settings.excluded_dirs (VCS, dependency and build output dirs).
            excluded_files: File names never indexed. Defaults to lock files.
            max_file_size_bytes: Files above this size are skipped.
            max_tree_depth: Maximum syntax tree depth walked per file.
            include_reference_text: Whether reference nodes carry their source text.
        """
        self.repo_id = repo_id
        self.repo_root = Path(repo_root) if isinstance(repo_root, str) else repo_root
        self.excluded_dirs = excluded_dirs if excluded_dirs is not None else settings.excluded_dirs
        self.excluded_files = excluded_files if excluded_files is not None else settings.excluded_files
        self.max_file_size_bytes = max_file_size_bytes or settings.max_file_size_bytes
        self.max_tree_depth = max_tree_depth or settings.max_tree_depth
        self.include_reference_text = (
            include_reference_text
            if include_reference_text is not None
            else settings.include_reference_text
        )

    def start_run(self) -> GraphBuildRun:
        return GraphBuildRun(
            repo_id=self.repo_id,
            repo_root=self.repo_root,
            max_file_size_bytes=self.max_file_size_bytes,
            max_tree_depth=self.max_tree_depth,
            include_reference_text=self.include_reference_text,
        )

    def build(self) -> RepoGraphResult:
        """Build the complete code graph for the repository.

        Returns:
            RepoGraphResult containing the root node id, the graph and
            indexing statistics.

        Raises:
            FileNotFoundError: If the repository root does not exist.
            ValueError: If the repository root is not a directory.
        """
        self.validate_root()
        return self.build_for_paths(self.scan())

    def validate_root(self) -> None:
        if not self.repo_root.exists():
            raise FileNotFoundError(f"Repository root does not exist: {self.repo_root}")
        if not self.repo_root.is_dir():
            raise ValueError(f"Repository root is not a directory: {self.repo_root}")

    def build_for_paths(self, paths: Iterable[Path | str]) -> RepoGraphResult:
        """Build the code graph from an explicit, ordered list of files.

        Args:
            paths: File paths, absolute or relative to the repository root

        Returns:
            RepoGraphResult for the given files
        """
        run = self.start_run()
        for path in paths:
            file_path = self._absolute(path)
            if not tree_sitter_parser.support_file(file_path):
                run.stats.total_files += 1
                run.stats.skipped_files += 1
                continue
            try:
                content, created_at, modified_at = self.read_file(file_path)
            except FileAccessError as e:
                run.skip_file(e)
                continue
            run.ingest_file(file_path, content, created_at=created_at, modified_at=modified_at)
        return run.finish()

    def read_file(self, file_path: Path) -> tuple[bytes, float, float]:
        """Read a file and its timestamps.

        Raises:
            FileAccessError: If the file cannot be stat'ed or read
        """
        try:
            stat = file_path.stat()
            content = file_path.read_bytes()
        except OSError as e:
            raise FileAccessError(str(file_path), e.strerror or str(e)) from e
        return content, stat.st_ctime, stat.st_mtime

    def _absolute(self, path: Path | str) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.repo_root / path

    def scan(self) -> Iterator[Path]:
        """Walk the repository and yield supported source files in a stable order.

        Entries are visited directories first, then by case-insensitive name.
        Excluded and hidden directories are not walked into.
        """
        yield from self._scan_directory(self.repo_root)

    def _scan_directory(self, dir_path: Path) -> Iterator[Path]:
        try:
            with os.scandir(dir_path) as it:
                entries = sorted(
                    it,
                    key=lambda entry: (not entry.is_dir(follow_symlinks=False), entry.name.lower()),
                )
        except PermissionError as e:
            logger.warning(f"Permission denied accessing {dir_path}: {e}")
            return
        except OSError as e:
            logger.warning(f"Error accessing directory {dir_path}: {e}")
            return

        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                if self._should_exclude_dir(entry.name):
                    continue
                yield from self._scan_directory(Path(entry.path))
            elif entry.is_file(follow_symlinks=False):
                if entry.name in self.excluded_files:
                    continue
                if tree_sitter_parser.support_file(entry.name):
                    yield Path(entry.path)

    def _should_exclude_dir(self, name: str) -> bool:
        return name in self.excluded_dirs or name.startswith(".")
