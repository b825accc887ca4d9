# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Field indexes and the document cache.

A FieldIndex maps one kind of key (content token, type name, package name,
method name or import string) to the set of document paths containing it.
The search index keeps five of them side by side plus a DocumentCache that
resolves paths back to documents.

Invariant: a path is in the set for a key if and only if the document, as last
indexed, contains that key. Keys whose set becomes empty are pruned.

Thread Safety:
    Each FieldIndex and DocumentCache owns a reentrant lock. Creating the set
    for a new key and inserting into it happen under that lock, so concurrent
    writers never lose an insert. There is no lock spanning several indexes.
"""

import logging
import threading
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

from corpus_index.models import SourceDocument

logger = logging.getLogger(__name__)


class FieldIndex:
    """Key -> set of document paths, with per-path key tracking for removal."""

    def __init__(self, name: str) -> None:
        """Initialize an empty field index.

        Args:
            name: Field name used in log messages (e.g., "token", "type").
        """
        self.name = name
        self._lock = threading.RLock()
        self._entries: Dict[str, Set[str]] = {}
        # path -> keys it was inserted under, so remove() avoids a full scan
        self._keys_by_path: Dict[str, Set[str]] = {}

    def put(self, key: str, path: str) -> None:
        """Add path to the set for key, creating the set if absent."""
        if not key or not path:
            return
        with self._lock:
            paths = self._entries.get(key)
            if paths is None:
                paths = self._entries[key] = set()
            paths.add(path)
            self._keys_by_path.setdefault(path, set()).add(key)

    def put_all(self, keys: Iterable[str], path: str) -> None:
        """Add path under every key in one critical section."""
        with self._lock:
            for key in keys:
                self.put(key, path)

    def remove(self, path: str) -> None:
        """Delete path from every set and prune keys left empty."""
        with self._lock:
            keys = self._keys_by_path.pop(path, None)
            if not keys:
                return
            for key in keys:
                paths = self._entries.get(key)
                if paths is None:
                    continue
                paths.discard(path)
                if not paths:
                    del self._entries[key]

    def get(self, key: Optional[str]) -> FrozenSet[str]:
        """Snapshot of the paths for key; empty when the key is absent."""
        if key is None:
            return frozenset()
        with self._lock:
            paths = self._entries.get(key)
            return frozenset(paths) if paths else frozenset()

    def match_keys(self, fragment: str) -> FrozenSet[str]:
        """Union of paths for every key containing fragment as a substring."""
        with self._lock:
            matched: Set[str] = set()
            for key, paths in self._entries.items():
                if fragment in key:
                    matched.update(paths)
            return frozenset(matched)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def contains_path(self, path: str) -> bool:
        """True if path appears under any key."""
        with self._lock:
            return path in self._keys_by_path

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._keys_by_path.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        """Number of distinct keys."""
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"FieldIndex(name={self.name!r}, keys={len(self)})"


class DocumentCache:
    """Path -> last indexed SourceDocument."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._documents: Dict[str, SourceDocument] = {}

    def put(self, document: SourceDocument) -> Optional[SourceDocument]:
        """Store document and return the previous one for its path, if any."""
        with self._lock:
            previous = self._documents.get(document.path)
            self._documents[document.path] = document
            return previous

    def get(self, path: str) -> Optional[SourceDocument]:
        with self._lock:
            return self._documents.get(path)

    def get_many(self, paths: Iterable[str]) -> List[SourceDocument]:
        """Resolve paths to documents, skipping paths no longer cached."""
        with self._lock:
            found = (self._documents.get(path) for path in paths)
            return [doc for doc in found if doc is not None]

    def remove(self, path: str) -> Optional[SourceDocument]:
        with self._lock:
            return self._documents.pop(path, None)

    def values(self) -> List[SourceDocument]:
        with self._lock:
            return list(self._documents.values())

    def paths(self) -> List[str]:
        with self._lock:
            return list(self._documents)

    def clear(self) -> None:
        with self._lock:
            self._documents.clear()

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._documents

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
