from dataclasses import dataclass, field


@dataclass
class IndexingStats:
    """Statistics collected during one analysis run.

    Attributes:
        total_files: Total number of files handed to the run.
        indexed_files: Number of files whose tags were extracted.
        skipped_files: Number of files skipped (unsupported, oversized or unreadable).
        failed_files: Number of files that failed to parse.
        total_folders: Number of Folder nodes created.
        total_definitions: Number of definition nodes created.
        total_references: Number of reference tags buffered for resolution.
        resolved_references: References linked to a definition node. Repeats of
            the same reference included (see ResolutionStats.edges_created).
        unresolved_references: References whose name matched no definition.
        orphaned_references: References whose file or definition node was missing.
        errors: Error messages encountered during the run.
    """
    total_files: int = 0
    indexed_files: int = 0
    skipped_files: int = 0
    failed_files: int = 0
    total_folders: int = 0
    total_definitions: int = 0
    total_references: int = 0
    resolved_references: int = 0
    unresolved_references: int = 0
    orphaned_references: int = 0
    errors: list[str] = field(default_factory=list)
