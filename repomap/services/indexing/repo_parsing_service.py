"""
Repository parsing service using Tree-sitter.
"""

import asyncio
import logging
from pathlib import Path

from repomap.graph.repo_graph_builder import RepoGraphBuilder
from repomap.models.graph.repo_graph_result import RepoGraphResult
from repomap.parser.exceptions import FileAccessError

logger = logging.getLogger(__name__)


class RepoParsingService:
    """Parse repository and build in-memory code graph."""

    async def parse_repository(
        self,
        *,
        local_path: str,
        repo_id: str,
        file_paths: list[str] | None = None,
    ) -> RepoGraphResult:
        """
        Parse repository using Tree-sitter and build the code graph.

        File reads run in a worker thread; extraction and graph assembly run
        on the calling task, one file at a time, in scan order.

        Args:
            local_path: Path to the checked-out repository
            repo_id: Internal repo identifier, part of every node id
            file_paths: Optional explicit file list (absolute or relative to
                local_path). If None, the repository is scanned.

        Returns:
            RepoGraphResult with the graph view and stats
        """
        repo_path = Path(local_path)

        if not repo_path.exists():
            raise FileNotFoundError(f"Repository not found at {local_path}")

        builder = RepoGraphBuilder(repo_id=repo_id, repo_root=repo_path)
        builder.validate_root()

        if file_paths is None:
            paths = await asyncio.to_thread(lambda: list(builder.scan()))
        else:
            paths = [Path(path) if Path(path).is_absolute() else repo_path / path for path in file_paths]

        run = builder.start_run()
        for path in paths:
            try:
                content, created_at, modified_at = await asyncio.to_thread(builder.read_file, path)
            except FileAccessError as e:
                run.skip_file(e)
                continue
            run.ingest_file(path, content, created_at=created_at, modified_at=modified_at)

        graph_result = run.finish()
        logger.info(f"Parsed repository {repo_id}: {graph_result.summary()}")
        return graph_result
