"""
Tag data model.

A Tag is a transient extraction record produced per file: either a
definition (where a named entity is declared) or a reference (where a named
entity is used or called). Tags are created once while a single file is
extracted, never mutated afterwards, consumed by the graph assembler and
the reference resolver, and then discarded. They are not persisted as-is.
"""

import dataclasses
import enum


class TagKind(enum.StrEnum):
    """ Whether a tag declares an entity or uses one """

    definition = "def"
    reference = "ref"


class TagType(enum.StrEnum):
    """ The kind of code element a tag describes """

    class_ = "class"
    function = "function"
    method = "method"
    static_method = "staticMethod"
    private_method = "privateMethod"
    variable = "variable"
    type_alias = "typeAlias"
    function_call = "functionCall"
    method_call = "methodCall"
    constructor_call = "constructorCall"
    # Synthetic type of the file-level "global" scope
    module = "module"

    @property
    def is_method(self) -> bool:
        return self in (TagType.method, TagType.static_method, TagType.private_method)


@dataclasses.dataclass(frozen=True)
class TagLocation:
    """ Where a scope starts

    Attributes:
        file_path: repo-relative path of the file
        start_line: 1-indexed line where the scope starts
    """

    file_path: str
    start_line: int


@dataclasses.dataclass(frozen=True)
class TagParent:
    """ Value descriptor of the scope enclosing a tag.

    This is a lookup key, never an ownership relation: it is copied by value
    into each tag and never points at another Tag or graph node.
    """

    name: str
    type: TagType
    location: TagLocation


@dataclasses.dataclass(frozen=True)
class Tag:
    """ A definition or reference extracted from one file

    Attributes:
        name: the element name (``Foo.bar`` for static methods, ``#x`` for private ones)
        type: what kind of element it is
        kind: definition or reference
        file_path: repo-relative path of the file, POSIX separators
        start_line: 1-indexed inclusive start line
        end_line: 1-indexed inclusive end line
        text: verbatim source span
        target_file: origin file of a reference, when it could be resolved during extraction
        parent: descriptor of the enclosing scope
        receiver: for method calls, the source text of the called object
    """

    name: str
    type: TagType
    kind: TagKind
    file_path: str
    start_line: int
    end_line: int
    text: str | None = None
    target_file: str | None = None
    parent: TagParent | None = None
    receiver: str | None = None

    @property
    def is_definition(self) -> bool:
        return self.kind is TagKind.definition

    @property
    def is_reference(self) -> bool:
        return self.kind is TagKind.reference
