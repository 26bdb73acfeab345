"""
JavaScript/TypeScript tag extractor using Tree-sitter.

This module turns the syntax tree of one file into a flat, ordered list of
Tag records:

  Definitions
    - class_declaration / abstract_class_declaration      -> class
    - function_declaration / generator_function_declaration -> function
    - `const f = () => {}` / `const f = function () {}`   -> function
    - method_definition inside a class body               -> method,
      staticMethod (named `Class.method`) or privateMethod (`#x` or TS `private`)
    - type_alias_declaration                              -> typeAlias
    - top-level const/let/var bindings                    -> variable

  References
    - call_expression with an identifier callee           -> functionCall
    - call_expression with a member callee                -> methodCall
    - new_expression                                      -> constructorCall

Calls into the runtime (console.log, JSON.parse, items.map, new Error, ...)
never produce references; see `TagExtractor.should_ignore_reference`.

Import and export statements feed the run's SymbolIndex: exports populate
the export map, and an import binding whose source file is already known to
export the imported name registers an import alias. Everything learned from
a file is committed to the index only after the whole file was extracted,
so a file that fails halfway leaves no trace in the index.

JavaScript Tree-sitter grammar reference:
  https://github.com/tree-sitter/tree-sitter-javascript/blob/master/grammar.js

TypeScript Tree-sitter grammar reference:
  https://github.com/tree-sitter/tree-sitter-typescript/blob/master/grammar.js
"""

from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Iterator

from tree_sitter import Node

from repomap.core.config import settings
from repomap.graph.symbol_index import ImportAlias, SymbolIndex
from repomap.parser import tree_sitter_parser
from repomap.parser.exceptions import ParseError, TagExtractionError
from repomap.parser.js_globals import is_global_member, is_global_symbol
from repomap.parser.tags import Tag, TagKind, TagLocation, TagParent, TagType

GLOBAL_SCOPE = "global"

FUNCTION_VALUE_TYPES = frozenset({
    "arrow_function",
    "function",
    "function_expression",
    "generator_function",
})


@dataclass
class _FileState:
    """Mutable state of one `TagExtractor.extract` call.

    A fresh instance is created per file, so nothing (scopes, pending
    exports or aliases) can leak from one file into the next.
    """
    relative_path: str
    content: bytes
    tags: list[Tag] = field(default_factory=list)
    scopes: list[TagParent] = field(default_factory=list)
    local_definitions: set[str] = field(default_factory=set)
    exports: list[tuple[str, str | None]] = field(default_factory=list)
    aliases: dict[str, ImportAlias] = field(default_factory=dict)

    @property
    def current_scope(self) -> TagParent:
        if self.scopes:
            return self.scopes[-1]
        return TagParent(
            name=GLOBAL_SCOPE,
            type=TagType.module,
            location=TagLocation(file_path=self.relative_path, start_line=0),
        )

    def enclosing_scope(self) -> TagParent | None:
        return self.scopes[-1] if self.scopes else None

    def enclosing_class(self) -> TagParent | None:
        for scope in reversed(self.scopes):
            if scope.type is TagType.class_:
                return scope
        return None

    @contextmanager
    def enter_scope(self, scope: TagParent) -> Iterator[None]:
        self.scopes.append(scope)
        try:
            yield
        finally:
            self.scopes.pop()

    def add(self, tag: Tag) -> None:
        self.tags.append(tag)
        if tag.is_definition:
            self.local_definitions.add(tag.name)


class TagExtractor:
    """Extracts definition and reference tags from JavaScript/TypeScript files.

    The extractor is bound to the SymbolIndex of one analysis run. It reads
    the index to attach `target_file` to references whose origin is known
    by the end of the file, and writes exports and import aliases back to it.

    Example:
        index = SymbolIndex()
        extractor = TagExtractor(index)
        tags = extractor.extract(b"function foo() { bar(); }", "src/a.ts")
    """

    def __init__(
        self,
        symbol_index: SymbolIndex,
        max_depth: int | None = None,
        include_reference_text: bool | None = None,
    ):
        self.symbol_index = symbol_index
        self.max_depth = max_depth if max_depth is not None else settings.max_tree_depth
        self.include_reference_text = (
            include_reference_text
            if include_reference_text is not None
            else settings.include_reference_text
        )

    def extract(self, content: bytes, relative_path: str) -> list[Tag]:
        """Extract the ordered tags of one file.

        Args:
            content: Raw file content as bytes
            relative_path: Repo-relative path of the file (POSIX separators)

        Returns:
            Tags in traversal (pre-order) order

        Raises:
            UnsupportedLanguageError: If the file is outside the allowlist
            ParseError: If the file cannot be parsed or walked
        """
        tree, language = tree_sitter_parser.parse_source(content, relative_path)
        state = _FileState(relative_path=relative_path, content=content)

        try:
            self._walk(tree.root_node, state, depth=0)
        except ParseError:
            raise
        except RecursionError as e:
            raise TagExtractionError(
                "Syntax tree too deep to walk",
                file_path=relative_path,
                language=language,
            ) from e
        except Exception as e:
            raise TagExtractionError(
                f"Failed to extract tags: {e}",
                file_path=relative_path,
                language=language,
            ) from e

        state.tags = [self._with_origin(tag, state) for tag in state.tags]
        self._commit(state)
        return state.tags

    def _commit(self, state: _FileState) -> None:
        for exported_name, local_name in state.exports:
            self.symbol_index.record_export(state.relative_path, exported_name, local_name)
        for local_name, alias in state.aliases.items():
            self.symbol_index.resolve_import_alias(local_name, alias.source_file, alias.exported_name)

    # AST Traversal

    def _walk(self, node: Node, state: _FileState, depth: int) -> None:
        if depth > self.max_depth:
            raise TagExtractionError(
                f"Recursion depth exceeded: {depth} > {self.max_depth}",
                file_path=state.relative_path,
            )

        match node.type:
            case "class_declaration" | "abstract_class_declaration":
                tag = self._class_definition(node, state)
                if tag is not None:
                    self._add_scoped_definition(tag, node, state, depth)
                    return

            case "function_declaration" | "generator_function_declaration":
                tag = self._function_definition(node, state)
                if tag is not None:
                    self._add_scoped_definition(tag, node, state, depth)
                    return

            case "method_definition":
                tag = self._method_definition(node, state)
                if tag is not None:
                    self._add_scoped_definition(tag, node, state, depth)
                    return

            case "variable_declarator":
                tag = self._declarator_definition(node, state)
                if tag is not None and tag.type is TagType.function:
                    self._add_scoped_definition(tag, node, state, depth)
                    return
                if tag is not None:
                    state.add(tag)

            case "type_alias_declaration":
                tag = self._named_definition(node, TagType.type_alias, state)
                if tag is not None:
                    state.add(tag)
                return

            case "call_expression":
                tag = self._call_reference(node, state)
                if tag is not None:
                    state.add(tag)

            case "new_expression":
                tag = self._constructor_reference(node, state)
                if tag is not None:
                    state.add(tag)

            case "import_statement":
                self._register_imports(node, state)
                return

            case "export_statement":
                self._register_exports(node, state)

            case _:
                pass

        self._walk_children(node, state, depth)

    def _walk_children(self, node: Node, state: _FileState, depth: int) -> None:
        for child in node.children:
            self._walk(child, state, depth + 1)

    def _add_scoped_definition(self, tag: Tag, node: Node, state: _FileState, depth: int) -> None:
        """Add a definition and walk its subtree with the definition as enclosing scope."""
        state.add(tag)
        with state.enter_scope(self._scope_of(tag, state)):
            self._walk_children(node, state, depth)

    def _scope_of(self, tag: Tag, state: _FileState) -> TagParent:
        name = tag.name
        if tag.type.is_method and tag.parent is not None and not name.startswith(f"{tag.parent.name}."):
            name = f"{tag.parent.name}.{name}"
        return TagParent(
            name=name,
            type=tag.type,
            location=TagLocation(file_path=state.relative_path, start_line=tag.start_line),
        )

    # Definitions

    def _class_definition(self, node: Node, state: _FileState) -> Tag | None:
        return self._named_definition(node, TagType.class_, state)

    def _function_definition(self, node: Node, state: _FileState) -> Tag | None:
        return self._named_definition(node, TagType.function, state)

    def _named_definition(self, node: Node, tag_type: TagType, state: _FileState) -> Tag | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        name = self._name_of(name_node, state)
        if not name:
            return None
        return self._definition(node, name, tag_type, state, parent=state.enclosing_scope())

    def _method_definition(self, node: Node, state: _FileState) -> Tag | None:
        """Extract a method of a class body.

        Tree-sitter structure for `static create() {}`:
          method_definition
            ├── static
            ├── name: property_identifier "create"
            ├── parameters: formal_parameters
            └── body: statement_block

        Methods of object literals share the node type but are not class
        members; they yield no definition.
        """
        if node.parent is None or node.parent.type != "class_body":
            return None

        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        method_name = self._name_of(name_node, state)
        if not method_name:
            return None

        class_scope = state.enclosing_class()
        is_static = any(child.type == "static" for child in node.children)
        is_private = (
            name_node.type == "private_property_identifier"
            or self._accessibility(node, state) == "private"
        )

        if is_static:
            tag_type = TagType.static_method
            name = f"{class_scope.name}.{method_name}" if class_scope else method_name
        elif is_private:
            tag_type = TagType.private_method
            name = method_name
        else:
            tag_type = TagType.method
            name = method_name

        return self._definition(node, name, tag_type, state, parent=class_scope)

    def _declarator_definition(self, node: Node, state: _FileState) -> Tag | None:
        """Extract a function or variable bound by a declarator.

        Handles:
          - `const foo = () => {}`          -> function
          - `let bar = function () {}`      -> function
          - `export const LIMIT = 10`       -> variable (top-level only)
        """
        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            return None
        name = self._name_of(name_node, state)

        value_node = node.child_by_field_name("value")
        if value_node is not None and value_node.type in FUNCTION_VALUE_TYPES:
            return self._definition(node, name, TagType.function, state, parent=state.enclosing_scope())

        if self._is_top_level_declarator(node):
            return self._definition(node, name, TagType.variable, state, parent=None)
        return None

    def _is_top_level_declarator(self, node: Node) -> bool:
        declaration = node.parent
        if declaration is None or declaration.type not in ("lexical_declaration", "variable_declaration"):
            return False
        container = declaration.parent
        if container is not None and container.type == "export_statement":
            container = container.parent
        return container is not None and container.type == "program"

    def _definition(
        self,
        node: Node,
        name: str,
        tag_type: TagType,
        state: _FileState,
        parent: TagParent | None,
    ) -> Tag:
        return Tag(
            name=name,
            type=tag_type,
            kind=TagKind.definition,
            file_path=state.relative_path,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            text=self._extract_text(state.content, node.start_byte, node.end_byte),
            parent=parent,
        )

    # References

    def should_ignore_reference(self, node: Node, content: bytes) -> bool:
        """Check whether a call/constructor expression is a call into the runtime.

        A reference is ignored when:
          - it constructs an Error (`throw new Error(...)` or bare `new Error(...)`)
          - a plain call's identifier is a global (`setTimeout()`, `require()`)
          - a member call's root object is a global (`console.log()`,
            `window.localStorage.getItem()`) or its property is a global or a
            built-in prototype method (`items.map()`, `p.then()`)

        Args:
            node: call_expression or new_expression node
            content: Raw file content

        Returns:
            True if no reference tag should be emitted for the node
        """
        if node.type == "new_expression":
            callee = node.child_by_field_name("constructor")
            if callee is not None and callee.type == "identifier":
                if self._extract_text(content, callee.start_byte, callee.end_byte) == "Error":
                    return True
        elif node.type == "call_expression":
            callee = node.child_by_field_name("function")
        else:
            return False

        if callee is None:
            return True

        if callee.type == "identifier":
            return is_global_symbol(self._extract_text(content, callee.start_byte, callee.end_byte))

        if callee.type == "member_expression":
            return self._reference(node, name, TagType.method_call, state, self._receiver_text(callee, state))

        if callee.type == "identifier":
            return self._reference(node, name, TagType.function_call, state)

        return None

    def _constructor_reference(self, node: Node, state: _FileState) -> Tag | None:
        """Extract a reference from a new_expression (constructor call).

        Handles:
          - `new MyClass()`         -> constructorCall "MyClass"
          - `new a.b.Class()`       -> constructorCall "Class", receiver="a.b"
        """
        callee = node.child_by_field_name("constructor")
        if callee is None or self.should_ignore_reference(node, state.content):
            return None

        name = self._name_of(callee, state)
        if not name:
            return None

        if callee.type == "member_expression":
            return self._reference(node, name, TagType.constructor_call, state, self._receiver_text(callee, state))

        return self._reference(node, name, TagType.constructor_call, state)

    def _reference(
        self,
        node: Node,
        name: str,
        tag_type: TagType,
        state: _FileState,
        receiver: str | None = None,
    ) -> Tag:
        text = None
        if self.include_reference_text:
            text = self._extract_text(state.content, node.start_byte, node.end_byte)
        return Tag(
            name=name,
            type=tag_type,
            kind=TagKind.reference,
            file_path=state.relative_path,
            start_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            text=text,
            parent=state.current_scope,
            receiver=receiver,
        )

    def _receiver_text(self, member: Node, state: _FileState) -> str | None:
        object_node = member.child_by_field_name("object")
        if object_node is None or object_node.type not in ("identifier", "this", "member_expression"):
            return None
        return self._extract_text(state.content, object_node.start_byte, object_node.end_byte)

    def _with_origin(self, tag: Tag, state: _FileState) -> Tag:
        """Attach `target_file` to a reference once the whole file is walked.

        Function and class declarations are hoisted, so the origin is looked
        up only after every definition of the file is known. Calls through a
        member use the origin of their receiver when it is a bare identifier.
        """
        if not tag.is_reference:
            return tag
        if tag.receiver is None:
            origin_name = tag.name if tag.type is not TagType.method_call else None
        elif tag.receiver != "this" and "." not in tag.receiver:
            origin_name = tag.receiver
        else:
            origin_name = None
        if origin_name is None:
            return tag
        return replace(tag, target_file=self._origin_file(origin_name, state))

    def _origin_file(self, name: str, state: _FileState) -> str | None:
        """Resolve the file a bare name comes from, if already known.

        Import aliases of this file win, then aliases registered by earlier
        files, then definitions of this file, then definitions of earlier files.
        """
        alias = state.aliases.get(name) or self.symbol_index.lookup_alias(name)
        if alias is not None:
            return alias.source_file
        if name in state.local_definitions:
            return state.relative_path
        location = self.symbol_index.defined_symbol(name)
        return location.file if location is not None else None

    # Imports / exports

    def _register_imports(self, node: Node, state: _FileState) -> None:
        """Register import aliases for bindings of an already-known exporter.

        Tree-sitter structure for `import { A, B as C } from './utils'`:
          import_statement
            ├── import
            ├── import_clause
            │   └── named_imports
            │       ├── import_specifier  (name: "A")
            │       └── import_specifier  (name: "B", alias: "C")
            ├── from
            └── source: string "'./utils'"
        """
        source_node = node.child_by_field_name("source")
        if source_node is None:
            return

        specifier = self._string_value(source_node, state)
        source_file = self.symbol_index.resolve_module(state.relative_path, specifier)
        if source_file is None:
            return

        for local_name, exported_name in self._import_bindings(node, state):
            if self.symbol_index.exports_name(source_file, exported_name):
                state.aliases[local_name] = ImportAlias(source_file, exported_name)

    def _import_bindings(self, node: Node, state: _FileState) -> list[tuple[str, str]]:
        """Return (local name, exported name) pairs of an import statement.

        Default imports bind the `default` export; namespace imports
        (`import * as x`) bind no single export and are skipped.
        """
        bindings: list[tuple[str, str]] = []
        for clause in node.children:
            if clause.type != "import_clause":
                continue
            for child in clause.children:
                if child.type == "identifier":
                    bindings.append((self._name_of(child, state), "default"))
                elif child.type == "named_imports":
                    for specifier in child.children:
                        if specifier.type != "import_specifier":
                            continue
                        name_node = specifier.child_by_field_name("name")
                        alias_node = specifier.child_by_field_name("alias")
                        if name_node is None:
                            continue
                        exported_name = self._name_of(name_node, state)
                        local_name = self._name_of(alias_node, state) if alias_node is not None else exported_name
                        bindings.append((local_name, exported_name))
        return bindings

    def _register_exports(self, node: Node, state: _FileState) -> None:
        """Record the names an export statement makes public.

        Handles:
          - `export function foo() {}` / `export class Foo {}`  -> "foo" / "Foo"
          - `export const a = 1, b = 2`                         -> "a", "b"
          - `export { a, b as c }`                              -> "a", "c"
          - `export default function foo() {}`                  -> "default" (local "foo")
          - `export default foo`                                -> "default" (local "foo")
        """
        is_default = any(child.type == "default" for child in node.children)

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            names = self._declared_names(declaration, state)
            if is_default:
                state.exports.append(("default", names[0] if names else None))
            else:
                state.exports.extend((name, name) for name in names)
            return

        if is_default:
            value = node.child_by_field_name("value")
            local_name = None
            if value is not None and value.type == "identifier":
                local_name = self._name_of(value, state)
            state.exports.append(("default", local_name))
            return

        for clause in node.children:
            if clause.type != "export_clause":
                continue
            for specifier in clause.children:
                if specifier.type != "export_specifier":
                    continue
                name_node = specifier.child_by_field_name("name")
                alias_node = specifier.child_by_field_name("alias")
                if name_node is None:
                    continue
                local_name = self._name_of(name_node, state)
                exported_name = self._name_of(alias_node, state) if alias_node is not None else local_name
                state.exports.append((exported_name, local_name))

    def _declared_names(self, declaration: Node, state: _FileState) -> list[str]:
        if declaration.type in ("lexical_declaration", "variable_declaration"):
            names = []
            for declarator in declaration.children:
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                if name_node is not None and name_node.type == "identifier":
                    names.append(self._name_of(name_node, state))
            return names

        name_node = declaration.child_by_field_name("name")
        if name_node is None:
            return []
        name = self._name_of(name_node, state)
        return [name] if name else []

    # Helpers

    def _name_of(self, node: Node, state: _FileState) -> str:
        """Name of a declaration name node or of a callee.

        The same rule names both the entity being declared (and therefore
        the enclosing scope of later calls) and the entity being called:
        identifiers by their text, member expressions by their property.
        """
        match node.type:
            case (
                "identifier"
                | "type_identifier"
                | "property_identifier"
                | "private_property_identifier"
                | "shorthand_property_identifier"
            ):
                return self._extract_text(state.content, node.start_byte, node.end_byte)
            case "string":
                return self._string_value(node, state)
            case "member_expression":
                property_node = node.child_by_field_name("property")
                return self._name_of(property_node, state) if property_node is not None else ""
            case "computed_property_name":
                return "[computed]"
            case _:
                return ""

    def _root_object(self, member: Node) -> Node | None:
        """Follow `object` fields down a member chain: `a.b.c` -> `a`."""
        current = member.child_by_field_name("object")
        while current is not None and current.type in ("member_expression", "subscript_expression"):
            current = current.child_by_field_name("object")
        return current

    def _accessibility(self, node: Node, state: _FileState) -> str | None:
        for child in node.children:
            if child.type == "accessibility_modifier":
                return self._extract_text(state.content, child.start_byte, child.end_byte)
        return None

    def _string_value(self, node: Node, state: _FileState) -> str:
        raw = self._extract_text(state.content, node.start_byte, node.end_byte)
        return raw.strip("'\"`")

    def _extract_text(self, content: bytes, start_byte: int, end_byte: int) -> str:
        """Decode the byte range of a node; Tree-sitter offsets are byte offsets."""
        return content[start_byte:end_byte].decode("utf-8", errors="replace")
