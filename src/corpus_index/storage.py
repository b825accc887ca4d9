# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Storage abstraction for source documents.

The index and the dependency analyzer never own documents; they consume them
from a repository. This module defines that boundary:

- DocumentRepository: Abstract interface for document storage backends
- InMemoryDocumentRepository: Thread-safe in-memory implementation

Swapping in a persistent backend only requires another DocumentRepository.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from corpus_index.models import SourceDocument

# Maximum path length accepted by the repository
_MAX_PATH_LENGTH = 4096


class DocumentRepository(ABC):
    """Abstract storage interface for source documents."""

    @abstractmethod
    def save(self, document: SourceDocument) -> None:
        """Store a document, replacing any document with the same path.

        Raises:
            ValueError: If the document path is invalid.
        """
        pass

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete the document at path.

        Returns:
            True if a document was deleted, False if none existed.
        """
        pass

    @abstractmethod
    def get(self, path: str) -> Optional[SourceDocument]:
        """Return the document at path, or None."""
        pass

    @abstractmethod
    def find_all(self) -> List[SourceDocument]:
        """Return every stored document. Empty list if storage is empty."""
        pass

    def save_all(self, documents: Iterable[SourceDocument]) -> None:
        """Store several documents."""
        for document in documents:
            self.save(document)


class InMemoryDocumentRepository(DocumentRepository):
    """In-memory document storage.

    Features:
    - O(1) lookups by path
    - No persistence across sessions
    - Thread-safe: all operations hold a reentrant lock
    """

    def __init__(self, documents: Optional[Iterable[SourceDocument]] = None) -> None:
        self._lock = threading.RLock()
        self._documents: Dict[str, SourceDocument] = {}
        if documents:
            self.save_all(documents)

    def _validate_document(self, document: SourceDocument) -> None:
        """Validate document identity before storing.

        Raises:
            ValueError: If the document or its path is invalid.
        """
        if document is None:
            raise ValueError("Document cannot be None")
        path = document.path
        if not path:
            raise ValueError("Document path cannot be empty")
        # ASCII control characters (0-31) are never part of a valid path
        if any(ord(c) < 32 for c in path):
            raise ValueError(f"Document path contains invalid control characters: {repr(path)}")
        if len(path) > _MAX_PATH_LENGTH:
            raise ValueError(f"Document path too long: {len(path)} > {_MAX_PATH_LENGTH}")

    def save(self, document: SourceDocument) -> None:
        self._validate_document(document)
        with self._lock:
            self._documents[document.path] = document

    def delete(self, path: str) -> bool:
        with self._lock:
            return self._documents.pop(path, None) is not None

    def get(self, path: str) -> Optional[SourceDocument]:
        with self._lock:
            return self._documents.get(path)

    def find_all(self) -> List[SourceDocument]:
        with self._lock:
            return list(self._documents.values())

    def clear(self) -> None:
        """Remove all documents.

        Used for testing and reloading a corpus from scratch.
        """
        with self._lock:
            self._documents.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
