"""Type definitions for nodes and edges in the code graph."""

import dataclasses
import enum
from typing import Any

from repomap.parser.tags import TagType


class NodeType(enum.StrEnum):
    """ The type of a node in the code graph """

    repository = "Repository"
    folder = "Folder"
    file = "File"
    class_ = "Class"
    function = "Function"
    method = "Method"
    variable = "Variable"
    type_alias = "TypeAlias"
    function_call = "FunctionCall"
    method_call = "MethodCall"
    constructor_call = "ConstructorCall"

    @classmethod
    def from_tag_type(cls, tag_type: TagType) -> "NodeType":
        """Map a tag type onto the (coarser) node type used in the graph."""
        match tag_type:
            case TagType.class_:
                return cls.class_
            case TagType.function:
                return cls.function
            case TagType.method | TagType.static_method | TagType.private_method:
                return cls.method
            case TagType.variable:
                return cls.variable
            case TagType.type_alias:
                return cls.type_alias
            case TagType.function_call:
                return cls.function_call
            case TagType.method_call:
                return cls.method_call
            case TagType.constructor_call:
                return cls.constructor_call
            case _:
                raise ValueError(f"Tag type has no node type: {tag_type}")


class EdgeType(enum.StrEnum):
    """ The type of an edge in the code graph """

    contains = "CONTAINS"
    references = "REFERENCES"


@dataclasses.dataclass(frozen=True)
class GraphNodeData:
    """ A node in the code graph

    Attributes:
        node_id: deterministic digest of (repo_id, disambiguator)
        repo_id: the repository the node belongs to
        name: display name (repo/folder/file basename, or symbol name)
        type: the node type
        file_path: repo-relative path ("." for the repository root)
        start_line: 1-indexed inclusive start line, 0 for structural nodes
        end_line: 1-indexed inclusive end line, 0 for structural nodes
        text: verbatim source span of definitions and references
        is_directory: True for the repository root and folders
        is_reference: True for nodes created from reference tags
        size: file size in bytes
        created_at: POSIX timestamp of node creation
        modified_at: POSIX timestamp of the file's last modification
        tag_type: originating tag type, keeps staticMethod/privateMethod apart
    """

    node_id: str
    repo_id: str
    name: str
    type: NodeType
    file_path: str
    start_line: int = 0
    end_line: int = 0
    text: str | None = None
    is_directory: bool | None = None
    is_reference: bool | None = None
    size: int | None = None
    created_at: float | None = None
    modified_at: float | None = None
    tag_type: TagType | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render the node as a flat dict, dropping unset optional fields."""
        data = {}
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if value is None:
                continue
            data[field.name] = str(value) if isinstance(value, enum.Enum) else value
        return data


@dataclasses.dataclass(frozen=True)
class GraphEdgeData:
    """ An edge in the code graph

    Attributes:
        source_id: node id of the edge source
        target_id: node id of the edge target
        type: the edge type
        repo_id: the repository the edge belongs to
    """

    source_id: str
    target_id: str
    type: EdgeType
    repo_id: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "type": str(self.type),
            "repo_id": self.repo_id,
        }
