# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Dependency graph construction and cycle detection.

Flow: SourceDocuments -> type table -> adjacency mapping -> cycles

1. Type table: every declared type's simple name and package-qualified name
   maps to the path of the document declaring it.
2. Edges: each import (trailing ".*" stripped) found in the type table adds an
   edge from the importing document to the declaring document.
3. Cycles: three-state depth-first search over the adjacency mapping.

Known limitation: when two documents declare the same simple name, the type
table keeps the last one seen (last write wins). Without compiled symbol
tables there is no way to disambiguate, so an import of a simple name may
resolve to the wrong document or a qualified import may be shadowed.
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from corpus_index.models import DependencyAnalysisResult, SourceDocument

logger = logging.getLogger(__name__)

WILDCARD_SUFFIX = ".*"

# Node states for the depth-first traversal
UNVISITED = 0
ON_STACK = 1
VISITED = 2

DependencyGraph = Dict[str, FrozenSet[str]]
Cycle = Tuple[str, ...]


def strip_wildcard(import_name: str) -> str:
    """Drop a trailing wildcard suffix ("com.x.*" -> "com.x")."""
    if import_name.endswith(WILDCARD_SUFFIX):
        return import_name[: -len(WILDCARD_SUFFIX)]
    return import_name


class DependencyGraphBuilder:
    """Builds the document adjacency mapping from declared types and imports.

    Usage:
        builder = DependencyGraphBuilder()
        graph = builder.build(documents)
    """

    def build_type_table(self, documents: Iterable[SourceDocument]) -> Dict[str, str]:
        """Map simple and package-qualified type names to declaring paths."""
        table: Dict[str, str] = {}
        for document in documents:
            for type_name in document.type_names:
                names = [type_name]
                if document.package:
                    names.insert(0, f"{document.package}.{type_name}")
                for name in names:
                    previous = table.get(name)
                    if previous is not None and previous != document.path:
                        logger.debug(
                            f"Type name '{name}' declared in {previous} and {document.path}, "
                            f"keeping {document.path}"
                        )
                    table[name] = document.path
        return table

    def extract_dependencies(
        self, document: SourceDocument, type_table: Mapping[str, str]
    ) -> FrozenSet[str]:
        """Paths referenced by document's imports that resolve in type_table."""
        targets: Set[str] = set()
        for import_name in document.imports:
            target = type_table.get(strip_wildcard(import_name))
            if target is not None:
                targets.add(target)
        return frozenset(targets)

    def build(self, documents: Iterable[SourceDocument]) -> DependencyGraph:
        """Build the adjacency mapping.

        Every document with a path becomes a node, with or without edges.
        When several documents share a path, the last one is used.
        """
        by_path: Dict[str, SourceDocument] = {}
        for document in documents:
            if document is not None and document.path:
                by_path[document.path] = document

        type_table = self.build_type_table(by_path.values())
        return {
            path: self.extract_dependencies(document, type_table)
            for path, document in by_path.items()
        }


class CycleDetector:
    """Enumerates cycles in an adjacency mapping.

    Depth-first search with three node states (unvisited, on the current
    stack, fully visited). Reaching a node that is on the stack records the
    sub-path from that node to the end of the current path. Each node is
    expanded once overall, so total work is O(V + E).

    The traversal uses an explicit stack instead of recursion so deep graphs
    do not hit the interpreter recursion limit. Roots and neighbors are
    visited in sorted order, which makes the output deterministic.
    """

    def find_cycles(self, graph: Mapping[str, Iterable[str]]) -> List[Cycle]:
        """Return distinct cycles in discovery order.

        Two cycles that are rotations of each other (same closed path, different
        starting node) are reported once, in the first form discovered.
        """
        state: Dict[str, int] = {}
        cycles: List[Cycle] = []
        seen: Set[Cycle] = set()

        for root in sorted(graph):
            if state.get(root, UNVISITED) != UNVISITED:
                continue

            path: List[str] = [root]
            position: Dict[str, int] = {root: 0}
            state[root] = ON_STACK
            pending = [iter(sorted(graph.get(root, ())))]

            while pending:
                descended = False
                for neighbor in pending[-1]:
                    neighbor_state = state.get(neighbor, UNVISITED)
                    if neighbor_state == UNVISITED:
                        state[neighbor] = ON_STACK
                        position[neighbor] = len(path)
                        path.append(neighbor)
                        pending.append(iter(sorted(graph.get(neighbor, ()))))
                        descended = True
                        break
                    if neighbor_state == ON_STACK:
                        self._record(tuple(path[position[neighbor] :]), cycles, seen)

                if not descended:
                    pending.pop()
                    finished = path.pop()
                    del position[finished]
                    state[finished] = VISITED

        return cycles

    @staticmethod
    def _record(cycle: Cycle, cycles: List[Cycle], seen: Set[Cycle]) -> None:
        key = _canonical_rotation(cycle)
        if key in seen:
            return
        seen.add(key)
        cycles.append(cycle)


def _canonical_rotation(cycle: Cycle) -> Cycle:
    start = cycle.index(min(cycle))
    return cycle[start:] + cycle[:start]


def analyze_dependencies(
    documents: Optional[Iterable[SourceDocument]],
    builder: Optional[DependencyGraphBuilder] = None,
    detector: Optional[CycleDetector] = None,
) -> DependencyAnalysisResult:
    """Build the dependency graph for a document batch and find its cycles.

    The input is snapshotted once at the start of the call; later changes to
    the caller's collection are not observed.

    Args:
        documents: Documents to analyze. None is treated as empty.
        builder: Graph builder to use (default: DependencyGraphBuilder()).
        detector: Cycle detector to use (default: CycleDetector()).

    Returns:
        DependencyAnalysisResult with the adjacency mapping and cycles.
    """
    snapshot = [doc for doc in (documents or ()) if doc is not None]
    logger.debug(f"Analyzing dependencies for {len(snapshot)} documents")

    graph = (builder or DependencyGraphBuilder()).build(snapshot)
    cycles = (detector or CycleDetector()).find_cycles(graph)

    for cycle in cycles:
        logger.debug(f"Circular dependency: {' -> '.join(cycle + cycle[:1])}")
    logger.debug(
        f"Dependency analysis completed: {len(graph)} documents analyzed, "
        f"{len(cycles)} circular dependencies found"
    )

    return DependencyAnalysisResult(dependency_map=graph, cycles=tuple(cycles))
