# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Unit tests for dependency graph construction and cycle detection."""

from corpus_index.dependency_graph import (
    CycleDetector,
    DependencyGraphBuilder,
    analyze_dependencies,
    strip_wildcard,
)
from corpus_index.models import SourceDocument


def doc(path, type_name, imports=(), package="com.app"):
    return SourceDocument(
        path=path,
        content="",
        package=package,
        imports=list(imports),
        type_names=[type_name],
    )


class TestTypeTable:
    """Tests for the name resolution table."""

    def test_simple_and_qualified_names(self):
        """Test that both name forms resolve to the declaring path."""
        builder = DependencyGraphBuilder()
        table = builder.build_type_table([doc("A.java", "A")])

        assert table == {"com.app.A": "A.java", "A": "A.java"}

    def test_no_package_only_simple_name(self):
        """Test documents without a package."""
        builder = DependencyGraphBuilder()
        table = builder.build_type_table([doc("A.java", "A", package=None)])
        assert table == {"A": "A.java"}

    def test_last_write_wins_for_duplicate_simple_names(self):
        """Test that a later declaration of the same simple name replaces the earlier."""
        builder = DependencyGraphBuilder()
        table = builder.build_type_table(
            [doc("x/Util.java", "Util", package="com.x"), doc("y/Util.java", "Util", package="com.y")]
        )

        assert table["Util"] == "y/Util.java"
        assert table["com.x.Util"] == "x/Util.java"
        assert table["com.y.Util"] == "y/Util.java"


class TestEdgeExtraction:
    """Tests for import-based edges."""

    def test_strip_wildcard(self):
        """Test trailing wildcard removal."""
        assert strip_wildcard("com.app.*") == "com.app"
        assert strip_wildcard("com.app.A") == "com.app.A"

    def test_resolved_imports_become_edges(self):
        """Test qualified and simple imports resolve; unknown ones are ignored."""
        builder = DependencyGraphBuilder()
        documents = [
            doc("A.java", "A", imports=["com.app.B", "C", "java.util.List"]),
            doc("B.java", "B"),
            doc("C.java", "C"),
        ]
        graph = builder.build(documents)

        assert graph["A.java"] == frozenset({"B.java", "C.java"})
        assert graph["B.java"] == frozenset()
        assert graph["C.java"] == frozenset()

    def test_wildcard_of_type_resolves(self):
        """Test that 'Type.*' (static-member wildcard) resolves to the type."""
        builder = DependencyGraphBuilder()
        graph = builder.build([doc("A.java", "A", imports=["com.app.B.*"]), doc("B.java", "B")])
        assert graph["A.java"] == frozenset({"B.java"})

    def test_package_wildcard_does_not_resolve(self):
        """Test that a package wildcard has no type table entry."""
        builder = DependencyGraphBuilder()
        graph = builder.build([doc("A.java", "A", imports=["com.app.*"]), doc("B.java", "B")])
        assert graph["A.java"] == frozenset()

    def test_nodes_are_subset_of_input(self):
        """Test that only analyzed documents appear as nodes or targets."""
        builder = DependencyGraphBuilder()
        graph = builder.build([doc("A.java", "A", imports=["com.other.Missing"])])

        assert set(graph) == {"A.java"}
        assert all(target in graph for targets in graph.values() for target in targets)

    def test_documents_without_path_are_ignored(self):
        """Test that path-less documents are skipped."""
        builder = DependencyGraphBuilder()
        graph = builder.build([None, SourceDocument(path="", type_names=["X"]), doc("A.java", "A")])
        assert set(graph) == {"A.java"}


class TestCycleDetector:
    """Tests for CycleDetector."""

    def test_three_node_cycle(self):
        """Test A -> B -> C -> A yields one cycle with all three nodes."""
        graph = {"A": {"B"}, "B": {"C"}, "C": {"A"}}
        cycles = CycleDetector().find_cycles(graph)

        assert cycles == [("A", "B", "C")]

    def test_chain_has_no_cycle(self):
        """Test A -> B -> C without a return edge."""
        graph = {"A": {"B"}, "B": {"C"}, "C": set()}
        assert CycleDetector().find_cycles(graph) == []

    def test_self_reference(self):
        """Test a node referencing itself is a one-node cycle."""
        assert CycleDetector().find_cycles({"A": {"A"}}) == [("A",)]

    def test_cycle_entered_from_outside(self):
        """Test that the cycle excludes the path leading into it."""
        graph = {"A": {"B"}, "B": {"C"}, "C": {"B"}}
        assert CycleDetector().find_cycles(graph) == [("B", "C")]

    def test_two_independent_cycles(self):
        """Test disjoint cycles are both reported."""
        graph = {"A": {"B"}, "B": {"A"}, "X": {"Y"}, "Y": {"X"}}
        assert CycleDetector().find_cycles(graph) == [("A", "B"), ("X", "Y")]

    def test_diamond_without_cycle(self):
        """Test that revisiting a finished node is not a cycle."""
        graph = {"A": {"B", "C"}, "B": {"D"}, "C": {"D"}, "D": set()}
        assert CycleDetector().find_cycles(graph) == []

    def test_neighbor_outside_mapping(self):
        """Test edges to nodes that have no adjacency entry."""
        graph = {"A": {"Z"}}
        assert CycleDetector().find_cycles(graph) == []

    def test_deep_chain_does_not_hit_recursion_limit(self):
        """Test a long cycle well beyond the default recursion limit."""
        size = 5000
        graph = {f"n{i:05d}": {f"n{(i + 1) % size:05d}"} for i in range(size)}
        cycles = CycleDetector().find_cycles(graph)

        assert len(cycles) == 1
        assert len(cycles[0]) == size
        assert cycles[0][0] == "n00000"


class TestAnalyzeDependencies:
    """Tests for analyze_dependencies()."""

    def test_circular_imports(self):
        """Test three documents importing each other in a ring."""
        documents = [
            doc("A.java", "A", imports=["com.app.B"]),
            doc("B.java", "B", imports=["com.app.C"]),
            doc("C.java", "C", imports=["com.app.A"]),
        ]
        result = analyze_dependencies(documents)

        assert result.has_cycles
        assert len(result.cycles) == 1
        assert set(result.cycles[0]) == {"A.java", "B.java", "C.java"}
        assert result.files_in_cycles() == {"A.java", "B.java", "C.java"}

    def test_no_return_edge(self):
        """Test a chain of imports reports zero cycles."""
        documents = [
            doc("A.java", "A", imports=["com.app.B"]),
            doc("B.java", "B", imports=["com.app.C"]),
            doc("C.java", "C"),
        ]
        result = analyze_dependencies(documents)

        assert result.cycles == ()
        assert not result.has_cycles
        assert result.get_dependencies("A.java") == frozenset({"B.java"})
        assert result.get_dependents("C.java") == frozenset({"B.java"})

    def test_self_import(self):
        """Test a document importing its own type."""
        result = analyze_dependencies([doc("A.java", "A", imports=["com.app.A"])])
        assert result.cycles == (("A.java",),)

    def test_empty_and_none_input(self):
        """Test that no documents give an empty result."""
        assert analyze_dependencies([]).dependency_map == {}
        assert analyze_dependencies(None).cycles == ()

    def test_input_is_snapshotted(self):
        """Test that mutating the caller's list afterwards has no effect."""
        documents = [doc("A.java", "A")]
        result = analyze_dependencies(documents)
        documents.append(doc("B.java", "B"))

        assert set(result.dependency_map) == {"A.java"}
