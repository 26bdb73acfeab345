"""
Tests for ReferenceResolver

Tests candidate selection, alias handling, orphan counting and edge
deduplication of the resolution pass.
"""

import pytest

from repomap.graph.graph_types import EdgeType, NodeType
from repomap.graph.reference_resolver import ReferenceResolver
from repomap.graph.symbol_index import SymbolIndexFrozenError
from repomap.parser.tags import Tag, TagKind, TagLocation, TagParent, TagType


def _definition(name, tag_type, file, line):
    return Tag(name, tag_type, TagKind.definition, file, line, line, text=name)


def _reference(name, tag_type, file, line, target_file=None, receiver=None):
    scope = TagParent("global", TagType.module, TagLocation(file, 0))
    return Tag(
        name, tag_type, TagKind.reference, file, line, line,
        text=f"{name}()", target_file=target_file, parent=scope, receiver=receiver,
    )


def _references_edges(context):
    return [
        (edge.source_id, edge.target_id)
        for edge in context.graph.edges()
        if edge.type is EdgeType.references
    ]


@pytest.fixture
def resolver(context, assembler):
    return ReferenceResolver(context, assembler)


class TestResolution:
    """Test resolving references to definitions."""

    def test_function_call_resolved_across_files(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        b_id = assembler.add_file_node("b.ts")
        assembler.add_definitions(a_id, [_definition("helper", TagType.function, "a.ts", 1)])
        assembler.add_definitions(b_id, [_reference("helper", TagType.function_call, "b.ts", 2)])

        stats = resolver.resolve()

        assert stats.resolved == 1
        assert stats.unresolved == 0
        helper_id = assembler.definition_node_id("a.ts", "helper", 1)
        ((ref_id, target_id),) = _references_edges(context)
        assert target_id == helper_id
        ref = context.graph.get_node(ref_id)
        assert ref.is_reference is True
        assert ref.type is NodeType.function_call
        assert ref.file_path == "b.ts"
        assert (b_id, ref_id) in [(e.source_id, e.target_id) for e in context.graph.edges()]

    def test_unresolved_reference_creates_no_node(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        assembler.add_definitions(a_id, [_reference("bar", TagType.function_call, "a.ts", 1)])
        nodes_before = context.graph.number_of_nodes()

        stats = resolver.resolve()

        assert stats.unresolved == 1
        assert stats.resolved == 0
        assert context.graph.number_of_nodes() == nodes_before
        assert context.stats.unresolved_references == 1

    def test_constructor_call_resolves_to_class(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        assembler.add_definitions(a_id, [
            _definition("Widget", TagType.class_, "a.ts", 1),
            _reference("Widget", TagType.constructor_call, "a.ts", 5),
        ])

        stats = resolver.resolve()

        assert stats.resolved == 1
        ((_, target_id),) = _references_edges(context)
        assert target_id == assembler.definition_node_id("a.ts", "Widget", 1)

    def test_method_call_prefers_static_method_of_receiver(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        assembler.add_definitions(a_id, [
            _definition("Foo.create", TagType.static_method, "a.ts", 2),
            _definition("create", TagType.method, "a.ts", 9),
            _reference("create", TagType.method_call, "a.ts", 20, receiver="Foo"),
            _reference("create", TagType.method_call, "a.ts", 21, receiver="obj"),
        ])

        resolver.resolve()

        targets = sorted(target for _, target in _references_edges(context))
        assert targets == sorted([
            assembler.definition_node_id("a.ts", "Foo.create", 2),
            assembler.definition_node_id("a.ts", "create", 9),
        ])

    def test_private_method_fallback(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        assembler.add_definitions(a_id, [
            _definition("#secret", TagType.private_method, "a.ts", 2),
            _reference("#secret", TagType.method_call, "a.ts", 4, receiver="this"),
        ])

        stats = resolver.resolve()

        assert stats.resolved == 1

    def test_target_file_is_preferred(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        b_id = assembler.add_file_node("b.ts")
        c_id = assembler.add_file_node("c.ts")
        assembler.add_definitions(a_id, [_definition("run", TagType.function, "a.ts", 1)])
        assembler.add_definitions(b_id, [_definition("run", TagType.function, "b.ts", 1)])
        assembler.add_definitions(c_id, [
            _reference("run", TagType.function_call, "c.ts", 3, target_file="a.ts"),
        ])

        resolver.resolve()

        ((_, target_id),) = _references_edges(context)
        assert target_id == assembler.definition_node_id("a.ts", "run", 1)

    def test_aliased_import_maps_to_exported_name(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        b_id = assembler.add_file_node("b.ts")
        assembler.add_definitions(a_id, [_definition("helper", TagType.function, "a.ts", 1)])
        context.symbol_index.record_export("a.ts", "helper")
        context.symbol_index.resolve_import_alias("h", "a.ts", "helper")
        assembler.add_definitions(b_id, [_reference("h", TagType.function_call, "b.ts", 2, target_file="a.ts")])

        stats = resolver.resolve()

        assert stats.resolved == 1
        ((_, target_id),) = _references_edges(context)
        assert target_id == assembler.definition_node_id("a.ts", "helper", 1)

    def test_default_import_maps_through_default_exports(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        b_id = assembler.add_file_node("b.ts")
        assembler.add_definitions(a_id, [_definition("Widget", TagType.class_, "a.ts", 1)])
        context.symbol_index.record_export("a.ts", "default", "Widget")
        context.symbol_index.resolve_import_alias("W", "a.ts", "default")
        assembler.add_definitions(b_id, [
            _reference("W", TagType.constructor_call, "b.ts", 2, target_file="a.ts"),
        ])

        stats = resolver.resolve()

        assert stats.resolved == 1


class TestOrphansAndDeduplication:
    """Test counters for gaps and duplicate handling."""

    def test_missing_file_node_is_orphaned(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        assembler.add_definitions(a_id, [_definition("helper", TagType.function, "a.ts", 1)])
        context.reference_buffer.append(_reference("helper", TagType.function_call, "ghost.ts", 1))

        stats = resolver.resolve()

        assert stats.missing_file_nodes == 1
        assert stats.orphaned == 1
        assert _references_edges(context) == []
        assert context.stats.orphaned_references == 1

    def test_missing_definition_node_is_orphaned(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        context.symbol_index.record_definition("phantom", TagType.function, "a.ts", 4)
        assembler.add_definitions(a_id, [_reference("phantom", TagType.function_call, "a.ts", 9)])

        stats = resolver.resolve()

        assert stats.missing_definition_nodes == 1
        assert _references_edges(context) == []

    def test_same_reference_twice_yields_one_node_and_edge(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        ref = _reference("helper", TagType.function_call, "a.ts", 5)
        assembler.add_definitions(a_id, [_definition("helper", TagType.function, "a.ts", 1), ref, ref])

        stats = resolver.resolve()

        assert stats.resolved == 2
        assert stats.edges_created == 1
        assert context.stats.resolved_references == 2
        assert len(_references_edges(context)) == 1
        reference_nodes = [n for n in context.graph.nodes() if n.is_reference]
        assert len(reference_nodes) == 1

    def test_recursive_call_on_definition_line(self, context, assembler, resolver):
        a_id = assembler.add_file_node("a.ts")
        assembler.add_definitions(a_id, [
            _definition("loop", TagType.function, "a.ts", 1),
            _reference("loop", TagType.function_call, "a.ts", 1),
        ])

        resolver.resolve()

        ((ref_id, target_id),) = _references_edges(context)
        assert ref_id != target_id

    def test_index_is_frozen_after_resolve(self, context, resolver):
        resolver.resolve()

        with pytest.raises(SymbolIndexFrozenError):
            context.symbol_index.record_definition("late", TagType.function, "a.ts", 1)
