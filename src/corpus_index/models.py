# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for the corpus index.

This module defines the data structures shared by the index and the analyzers:
- SourceDocument: An already-parsed source file handed to the index
- SearchQuery: Structured content query with package filters and a result cap
- IndexStatistics: Point-in-time counts for the search index
- DependencyAnalysisResult: Adjacency mapping plus discovered cycles
- ImportOptimizationResult: Import clean-up suggestions for one document
- ImpactAnalysisResult: Documents affected by changing a type

All models serialize to JSON-compatible primitives via to_dict().
"""

import logging
import posixpath
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)


def _as_tuple(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(v for v in values if v is not None)


@dataclass(frozen=True)
class SourceDocument:
    """A source file as extracted upstream by the parser.

    The document is owned by the external repository; the index only keeps a
    reference keyed by ``path``.
    """

    path: str  # Identifier, unique within the corpus
    content: str = ""
    package: Optional[str] = None  # None means "no package declared"
    imports: Tuple[str, ...] = ()
    type_names: Tuple[str, ...] = ()
    method_names: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept lists from callers but keep the instance immutable
        object.__setattr__(self, "imports", _as_tuple(self.imports))
        object.__setattr__(self, "type_names", _as_tuple(self.type_names))
        object.__setattr__(self, "method_names", _as_tuple(self.method_names))
        if self.content is None:
            object.__setattr__(self, "content", "")

    def __hash__(self) -> int:
        return hash(self.path)

    @property
    def file_name(self) -> str:
        """Last component of the document path."""
        return posixpath.basename(self.path.replace("\\", "/"))

    def qualified_type_names(self) -> List[str]:
        """Declared type names prefixed with the package, when one exists."""
        if not self.package:
            return list(self.type_names)
        return [f"{self.package}.{name}" for name in self.type_names]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {
            "path": self.path,
            "content": self.content,
            "imports": list(self.imports),
            "type_names": list(self.type_names),
            "method_names": list(self.method_names),
        }
        if self.package is not None:
            result["package"] = self.package
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceDocument":
        """Deserialize from JSON-compatible dict.

        Raises:
            KeyError: If ``path`` is missing from data dict.
        """
        return cls(
            path=data["path"],
            content=data.get("content", ""),
            package=data.get("package"),
            imports=data.get("imports", ()),
            type_names=data.get("type_names", ()),
            method_names=data.get("method_names", ()),
        )


@dataclass
class SearchQuery:
    """Structured content query.

    Filters are applied in order: base match, include packages, exclude
    packages, result cap. Exclusion always wins over inclusion.
    """

    text: str
    case_sensitive: bool = False
    whole_word: bool = False
    use_regex: bool = False
    include_packages: Set[str] = field(default_factory=set)
    exclude_packages: Set[str] = field(default_factory=set)
    max_results: Optional[int] = None  # None means unlimited

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchQuery":
        """Build a query from a JSON-compatible dict (tool payloads)."""
        return cls(
            text=data.get("text", ""),
            case_sensitive=bool(data.get("case_sensitive", False)),
            whole_word=bool(data.get("whole_word", False)),
            use_regex=bool(data.get("use_regex", False)),
            include_packages=set(data.get("include_packages") or ()),
            exclude_packages=set(data.get("exclude_packages") or ()),
            max_results=data.get("max_results"),
        )


@dataclass(frozen=True)
class IndexStatistics:
    """Counts describing the search index at one point in time."""

    total_documents: int
    unique_tokens: int
    unique_types: int
    unique_packages: int
    unique_methods: int
    unique_imports: int

    def to_summary(self) -> str:
        return (
            f"Index Statistics: {self.total_documents} files, "
            f"{self.unique_tokens} tokens, {self.unique_types} types, "
            f"{self.unique_packages} packages, {self.unique_methods} methods, "
            f"{self.unique_imports} imports"
        )

    def to_dict(self) -> Dict[str, int]:
        """Serialize to JSON-compatible dict."""
        return {
            "total_documents": self.total_documents,
            "unique_tokens": self.unique_tokens,
            "unique_types": self.unique_types,
            "unique_packages": self.unique_packages,
            "unique_methods": self.unique_methods,
            "unique_imports": self.unique_imports,
        }


@dataclass(frozen=True)
class DependencyAnalysisResult:
    """Outcome of one dependency analysis call.

    Attributes:
        dependency_map: document path -> paths it references. Every analyzed
            document is a key, including those with no outgoing edges.
        cycles: Distinct cycles, each an ordered path whose last element
            implicitly links back to the first. A self reference is a
            one-element cycle.
    """

    dependency_map: Dict[str, FrozenSet[str]]
    cycles: Tuple[Tuple[str, ...], ...] = ()

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    def get_dependencies(self, path: str) -> FrozenSet[str]:
        """Paths the given document references (empty if unknown)."""
        return self.dependency_map.get(path, frozenset())

    def get_dependents(self, path: str) -> FrozenSet[str]:
        """Paths of documents that reference the given document."""
        return frozenset(
            source for source, targets in self.dependency_map.items() if path in targets
        )

    def files_in_cycles(self) -> Set[str]:
        """All paths that take part in at least one cycle."""
        return {path for cycle in self.cycles for path in cycle}

    def to_dict(self) -> Dict[str, Any]:
        """Export to a JSON-compatible dict.

        Returns:
            Dictionary containing:
            - metadata: timestamp, file and edge counts
            - files: per-file dependency/dependent counts and cycle membership
            - dependencies: list of {"source", "target"} edges
            - circular_dependencies: list of cycles (lists of paths)
        """
        in_cycle = self.files_in_cycles()
        dependent_counts: Dict[str, int] = {}
        edges: List[Dict[str, str]] = []
        for source in sorted(self.dependency_map):
            for target in sorted(self.dependency_map[source]):
                edges.append({"source": source, "target": target})
                dependent_counts[target] = dependent_counts.get(target, 0) + 1

        files = [
            {
                "path": path,
                "dependency_count": len(self.dependency_map[path]),
                "dependent_count": dependent_counts.get(path, 0),
                "in_cycle": path in in_cycle,
            }
            for path in sorted(self.dependency_map)
        ]

        return {
            "metadata": {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "total_files": len(self.dependency_map),
                "total_dependencies": len(edges),
                "total_cycles": len(self.cycles),
            },
            "files": files,
            "dependencies": edges,
            "circular_dependencies": [list(cycle) for cycle in self.cycles],
        }


@dataclass
class ImportOptimizationResult:
    """Import clean-up suggestions for a single document."""

    unused_imports: Set[str] = field(default_factory=set)
    wildcard_imports: Set[str] = field(default_factory=set)
    static_import_candidates: Set[str] = field(default_factory=set)
    optimized_imports: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "unused_imports": sorted(self.unused_imports),
            "wildcard_imports": sorted(self.wildcard_imports),
            "static_import_candidates": sorted(self.static_import_candidates),
            "optimized_imports": list(self.optimized_imports),
        }


@dataclass
class ImpactAnalysisResult:
    """Documents affected by a change to one type."""

    changed_type: str
    impacted_files: Dict[str, str] = field(default_factory=dict)  # path -> reason

    def add_impacted_file(self, path: str, reason: str) -> None:
        # First reason recorded for a path is kept
        self.impacted_files.setdefault(path, reason)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "changed_type": self.changed_type,
            "impacted_files": dict(sorted(self.impacted_files.items())),
        }
