import hashlib


def generate_node_id(repo_id: str, disambiguator: str) -> str:
    """
    Generate the deterministic id of a graph node.

    The same (repo_id, disambiguator) pair always yields the same id, so
    re-running an analysis over unchanged sources produces identical node
    ids, and two runs over different repositories never collide.
    """
    if not disambiguator:
        raise ValueError("disambiguator must be provided")
    canonical = f"{repo_id}::{disambiguator}"
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def repository_disambiguator() -> str:
    return "repo:root"


def folder_disambiguator(relative_path: str) -> str:
    return f"folder:{relative_path}"


def file_disambiguator(relative_path: str) -> str:
    return f"file:{relative_path}"


def definition_disambiguator(absolute_path: str, name: str, start_line: int) -> str:
    """
    Definitions are keyed by where they are written, not by their type:
    two definitions of the same name on the same line of the same file
    share one node.
    """
    return f"{absolute_path}:{name}:{start_line}"


def reference_disambiguator(absolute_path: str, name: str, start_line: int) -> str:
    # Prefixed so a recursive call on the definition's own line gets its own node
    return f"ref:{absolute_path}:{name}:{start_line}"
