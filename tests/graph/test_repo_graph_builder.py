"""
Tests for RepoGraphBuilder

End-to-end tests over small repositories written to a temporary
directory: graph shape, cross-file resolution, failure handling and the
structural properties every built graph must satisfy.
"""

from pathlib import Path

import networkx as nx
import pytest

from repomap.graph.graph_types import EdgeType, NodeType
from repomap.graph.repo_graph_builder import RepoGraphBuilder
from repomap.parser.tags import TagType


def _build(root, repo_id="repo-123", **kwargs):
    return RepoGraphBuilder(repo_id=repo_id, repo_root=root, **kwargs).build()


def _nodes_of_type(result, node_type):
    return [n for n in result.graph.get_nodes() if n.type is node_type]


def _edges_of_type(result, edge_type):
    return [(e.source_id, e.target_id) for e in result.graph.get_edges() if e.type is edge_type]


class TestScenarios:
    """Reference scenarios of the pipeline."""

    def test_single_file_with_builtin_and_undefined_calls(self, write_repo):
        root = write_repo({"a.ts": "function foo() {}\nconsole.log('x');\nbar();\n"})

        result = _build(root)

        assert len(_nodes_of_type(result, NodeType.file)) == 1
        (foo,) = _nodes_of_type(result, NodeType.function)
        assert foo.name == "foo"
        assert [n for n in result.graph.get_nodes() if n.is_reference] == []
        assert result.stats.total_references == 1
        assert result.stats.unresolved_references == 1
        assert _edges_of_type(result, EdgeType.references) == []

    def test_cross_file_reference(self, write_repo):
        root = write_repo({
            "a.ts": "export function helper() {}\n",
            "b.ts": "helper();\n",
        })

        result = _build(root)

        (helper,) = [n for n in _nodes_of_type(result, NodeType.function) if not n.is_reference]
        ((ref_id, target_id),) = _edges_of_type(result, EdgeType.references)
        assert target_id == helper.node_id
        ref = result.graph.get_node(ref_id)
        assert ref.file_path == "b.ts"
        assert ref.is_reference is True
        b_file = next(n for n in _nodes_of_type(result, NodeType.file) if n.name == "b.ts")
        assert ref_id in result.graph.successors(b_file.node_id, EdgeType.contains)

    def test_forward_reference_resolved_in_second_pass(self, write_repo):
        root = write_repo({
            "a.ts": "later();\n",
            "b.ts": "function later() {}\n",
        })

        result = _build(root)

        assert result.stats.resolved_references == 1

    def test_hoisted_local_function_wins_over_earlier_file(self, write_repo):
        root = write_repo({
            "a.ts": "function helper() {}\n",
            "b.ts": "helper();\nfunction helper() {}\n",
        })

        result = _build(root)

        targets = [result.graph.get_node(target_id) for _, target_id in _edges_of_type(result, EdgeType.references)]
        assert [t.file_path for t in targets] == ["b.ts"]

    def test_nested_folders(self, write_repo):
        root = write_repo({"src/lib/util.ts": "export const x = 1;\n"})

        result = _build(root)

        folders = {n.file_path: n for n in _nodes_of_type(result, NodeType.folder)}
        assert set(folders) == {"src", "src/lib"}
        (file_node,) = _nodes_of_type(result, NodeType.file)
        contains = _edges_of_type(result, EdgeType.contains)
        assert (result.root_node_id, folders["src"].node_id) in contains
        assert (folders["src"].node_id, folders["src/lib"].node_id) in contains
        assert (folders["src/lib"].node_id, file_node.node_id) in contains
        folder_ids = {result.root_node_id, folders["src"].node_id, folders["src/lib"].node_id}
        assert len([e for e in contains if e[1] in folder_ids]) == 2

    def test_private_and_static_methods(self, write_repo):
        root = write_repo({
            "foo.ts": "class Foo {\n  #secret() {}\n  static create() {}\n}\n",
        })

        result = _build(root)

        methods = _nodes_of_type(result, NodeType.method)
        assert {(m.name, m.tag_type) for m in methods} == {
            ("#secret", TagType.private_method),
            ("Foo.create", TagType.static_method),
        }
        (file_node,) = _nodes_of_type(result, NodeType.file)
        contains = _edges_of_type(result, EdgeType.contains)
        for method in methods:
            assert (file_node.node_id, method.node_id) in contains
        a, b = (m.node_id for m in methods)
        assert (a, b) not in contains
        assert (b, a) not in contains

    def test_rerun_produces_identical_ids(self, write_repo):
        root = write_repo({
            "src/a.ts": "export function helper() {}\nclass A { run() { helper(); } }\n",
            "src/b.js": "import { helper } from './a';\nhelper();\n",
        })

        first = _build(root)
        second = _build(root)

        assert {n.node_id for n in first.graph.get_nodes()} == {n.node_id for n in second.graph.get_nodes()}
        assert {(e.source_id, e.target_id, e.type) for e in first.graph.get_edges()} == {
            (e.source_id, e.target_id, e.type) for e in second.graph.get_edges()
        }

    def test_repo_id_changes_ids(self, write_repo):
        root = write_repo({"a.ts": "function foo() {}\n"})

        first = _build(root, repo_id="one")
        second = _build(root, repo_id="two")

        assert not {n.node_id for n in first.graph.get_nodes()} & {n.node_id for n in second.graph.get_nodes()}


class TestImports:
    """Test import-aware resolution end to end."""

    def test_aliased_import(self, write_repo):
        root = write_repo({
            "lib/a.ts": "export function helper() {}\n",
            "lib/b.ts": "import { helper as h } from './a';\nh();\n",
        })

        result = _build(root)

        assert result.stats.resolved_references == 1

    def test_default_import(self, write_repo):
        root = write_repo({
            "a.ts": "import W from './widget';\nnew W();\n",
            "widget.ts": "class Widget {}\nexport default Widget;\n",
        })

        result = _build(root)

        # a.ts is scanned before widget.ts, so no alias exists yet for W
        assert result.stats.unresolved_references == 1

    def test_default_import_after_exporter(self, write_repo):
        root = write_repo({
            "main.ts": "import W from './lib/widget';\nnew W();\n",
            "lib/widget.ts": "class Widget {}\nexport default Widget;\n",
        })

        result = _build(root)

        # lib/ is scanned before main.ts (directories first)
        assert result.stats.resolved_references == 1
        ((_, target_id),) = _edges_of_type(result, EdgeType.references)
        assert result.graph.get_node(target_id).name == "Widget"


class TestFailuresAndFiltering:
    """Test skipped and failed files."""

    def test_parse_error_keeps_file_node(self, write_repo):
        root = write_repo({
            "bad.ts": "function (\n",
            "good.ts": "function ok() {}\n",
        })

        result = _build(root)

        assert {n.name for n in _nodes_of_type(result, NodeType.file)} == {"bad.ts", "good.ts"}
        bad = next(n for n in _nodes_of_type(result, NodeType.file) if n.name == "bad.ts")
        assert result.graph.successors(bad.node_id) == []
        assert result.stats.failed_files == 1
        assert result.stats.indexed_files == 1
        assert result.stats.errors

    def test_excluded_and_unsupported_files(self, write_repo):
        root = write_repo({
            "node_modules/pkg/index.js": "function dep() {}\n",
            ".hidden/x.ts": "function hidden() {}\n",
            "README.md": "# readme\n",
            "script.py": "def f(): pass\n",
            "src/app.jsx": "function App() {}\n",
        })

        result = _build(root)

        assert [n.file_path for n in _nodes_of_type(result, NodeType.file)] == ["src/app.jsx"]
        assert [n.name for n in _nodes_of_type(result, NodeType.function)] == ["App"]

    def test_oversized_file_is_skipped(self, write_repo):
        root = write_repo({"big.js": "function big() {}\n" * 50, "small.js": "function s() {}\n"})

        result = _build(root, max_file_size_bytes=100)

        assert [n.name for n in _nodes_of_type(result, NodeType.file)] == ["small.js"]
        assert result.stats.skipped_files == 1

    def test_build_for_paths_rechecks_allowlist(self, write_repo):
        root = write_repo({"a.ts": "function a() {}\n", "notes.txt": "hello\n"})

        result = RepoGraphBuilder(repo_id="r", repo_root=root).build_for_paths(["a.ts", "notes.txt", "missing.ts"])

        assert result.stats.indexed_files == 1
        assert result.stats.skipped_files == 2

    def test_unreadable_file_is_skipped(self, write_repo, monkeypatch):
        root = write_repo({
            "a.ts": "function a() {}\n",
            "locked.ts": "function locked() {}\n",
            "z.ts": "function z() {}\n",
        })
        original_read_bytes = Path.read_bytes

        def read_bytes(self):
            if self.name == "locked.ts":
                raise PermissionError(13, "Permission denied")
            return original_read_bytes(self)

        monkeypatch.setattr(Path, "read_bytes", read_bytes)

        result = _build(root)

        assert result.stats.total_files == 3
        assert result.stats.skipped_files == 1
        assert result.stats.indexed_files == 2
        assert any("locked.ts" in error and "Permission denied" in error for error in result.stats.errors)
        assert {n.name for n in _nodes_of_type(result, NodeType.file)} == {"a.ts", "z.ts"}

    def test_relative_path_outside_root_is_skipped(self, write_repo):
        root = write_repo({"a.ts": "function a() {}\n"})
        run = RepoGraphBuilder(repo_id="r", repo_root=root).start_run()

        indexed = run.ingest_file("../x.ts", b"function x() {}\n")
        result = run.finish()

        assert indexed is False
        assert result.stats.skipped_files == 1
        assert _nodes_of_type(result, NodeType.file) == []
        assert _nodes_of_type(result, NodeType.folder) == []

    def test_relative_path_is_normalized(self, write_repo):
        root = write_repo({"src/a.ts": "function a() {}\n"})
        run = RepoGraphBuilder(repo_id="r", repo_root=root).start_run()

        run.ingest_file("src/./lib/../a.ts", b"function a() {}\n")
        result = run.finish()

        assert [n.file_path for n in _nodes_of_type(result, NodeType.file)] == ["src/a.ts"]
        assert [n.file_path for n in _nodes_of_type(result, NodeType.folder)] == ["src"]

    def test_missing_root(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            _build(tmp_path / "nope")

    def test_root_is_a_file(self, tmp_path):
        file_path = tmp_path / "a.ts"
        file_path.write_text("x();\n")

        with pytest.raises(ValueError):
            _build(file_path)


class TestGraphProperties:
    """Structural invariants of a built graph."""

    @pytest.fixture
    def result(self, write_repo):
        root = write_repo({
            "src/models/user.ts": (
                "export class User {\n"
                "  static create() { return new User(); }\n"
                "  save() { this.validate(); }\n"
                "  validate() {}\n"
                "}\n"
            ),
            "src/services/user_service.ts": (
                "import { User } from '../models/user';\n"
                "export function register() {\n"
                "  const u = User.create();\n"
                "  u.save();\n"
                "  missing();\n"
                "}\n"
            ),
            "index.js": "register();\n",
        })
        return _build(root)

    def test_no_duplicate_or_reverse_contains(self, result):
        contains = _edges_of_type(result, EdgeType.contains)

        assert len(contains) == len(set(contains))
        assert not {(b, a) for a, b in contains} & set(contains)

    def test_every_node_reachable_from_root(self, result):
        graph = nx.DiGraph()
        graph.add_nodes_from(n.node_id for n in result.graph.get_nodes())
        graph.add_edges_from(_edges_of_type(result, EdgeType.contains))

        reachable = nx.descendants(graph, result.root_node_id) | {result.root_node_id}

        assert reachable == set(graph.nodes)

    def test_every_node_has_single_container(self, result):
        contains = _edges_of_type(result, EdgeType.contains)
        targets = [target for _, target in contains]

        assert len(targets) == len(set(targets))

    def test_references_point_to_existing_definitions(self, result):
        references = _edges_of_type(result, EdgeType.references)

        assert references
        for source_id, target_id in references:
            assert result.graph.get_node(source_id).is_reference is True
            target = result.graph.get_node(target_id)
            assert target is not None
            assert not target.is_reference

    def test_resolution_counters(self, result):
        stats = result.stats

        assert stats.total_references == 6
        assert stats.resolved_references == 5
        assert stats.unresolved_references == 1
        assert stats.orphaned_references == 0

    def test_summary(self, result):
        summary = result.summary()

        assert summary["nodes"] == result.graph.number_of_nodes()
        assert summary["edges"] == result.graph.number_of_edges()
        assert summary["files_indexed"] == 3
