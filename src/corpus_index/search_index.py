# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""In-memory multi-field search index.

The SearchIndex keeps five FieldIndexes (content tokens, declared types,
packages, methods and imports) plus a DocumentCache, and answers queries by
intersecting the per-key path sets before resolving them to documents.

Failure semantics: malformed input never raises. None documents, empty paths,
empty query text and unknown keys degrade to no-ops or empty results. The only
error surfaced to callers is an invalid regular expression in a regex query
(QueryError), which is distinct from "no matches".

Thread Safety:
    Writers (index_file, remove_file, rebuild, clear) hold one reentrant lock,
    so a path's cached document and its field keys always change together and
    no key outlives the version that wrote it. Readers take only the per-field
    locks: a reader running concurrently with a writer may observe a document
    that is only partially indexed, or an empty index mid-rebuild, but never a
    path that is missing from the document cache.

Results:
    Every search returns a list of SourceDocuments without duplicates, ordered
    by path, so that max_results truncation is reproducible across runs.
"""

import logging
import re
import threading
import time
from typing import Iterable, List, Optional, Set

from corpus_index.field_index import DocumentCache, FieldIndex
from corpus_index.models import IndexStatistics, SearchQuery, SourceDocument
from corpus_index.tokenizer import (
    MIN_TOKEN_LENGTH,
    bounded,
    indexable_tokens,
    tokenize,
    whole_word_pattern,
)

logger = logging.getLogger(__name__)


class QueryError(ValueError):
    """Raised when a query cannot be evaluated (e.g., invalid regex)."""

    def __init__(self, message: str, pattern: Optional[str] = None) -> None:
        super().__init__(message)
        self.pattern = pattern


class SearchIndex:
    """Search index facade over the field indexes and document cache.

    Usage:
        index = SearchIndex()
        index.index_file(SourceDocument(path="A.java", content="class A"))
        docs = index.search_content("class")
        docs = index.search(SearchQuery(text="class", include_packages={"com.x"}))
    """

    def __init__(
        self,
        min_token_length: int = MIN_TOKEN_LENGTH,
        default_max_results: int = 0,
        slow_query_threshold_ms: Optional[int] = None,
    ) -> None:
        """Initialize an empty index.

        Args:
            min_token_length: Shortest content token written to the token index.
            default_max_results: Cap for structured queries that set no
                max_results. 0 means unlimited.
            slow_query_threshold_ms: Log a warning when a structured query takes
                longer than this. None disables the check.
        """
        self._min_token_length = min_token_length
        self._default_max_results = default_max_results
        self._slow_query_threshold_ms = slow_query_threshold_ms

        self._tokens = FieldIndex("token")
        self._types = FieldIndex("type")
        self._packages = FieldIndex("package")
        self._methods = FieldIndex("method")
        self._imports = FieldIndex("import")
        self._fields = (self._tokens, self._types, self._packages, self._methods, self._imports)

        self._documents = DocumentCache()

        # Serializes writers so a path's cache entry and field keys change together.
        # Readers never take it.
        self._write_lock = threading.RLock()

    # Indexing

    def index_file(self, document: Optional[SourceDocument]) -> None:
        """Index a document, replacing any prior entries for its path.

        No-op if document is None or has no path.
        """
        if document is None or not document.path:
            return
        with self._write_lock:
            self._insert(document)
        logger.debug(f"Indexed {document.path}")

    def remove_file(self, path: Optional[str]) -> None:
        """Remove every trace of path from the index. No-op if not indexed."""
        if not path:
            return
        with self._write_lock:
            self._remove_entries(path)
            removed = self._documents.remove(path) is not None
        if removed:
            logger.debug(f"Removed {path} from index")

    def rebuild(self, documents: Optional[Iterable[SourceDocument]]) -> None:
        """Replace the whole index with the supplied collection.

        Concurrent readers may see an empty or partially repopulated index
        while this runs, never a corrupted one.
        """
        batch = [doc for doc in (documents or ()) if doc is not None and doc.path]
        with self._write_lock:
            self.clear()
            for document in batch:
                self._insert(document)
        logger.info(f"Search index rebuilt with {len(self._documents)} documents")

    def clear(self) -> None:
        """Empty every field index and the document cache."""
        with self._write_lock:
            for field_index in self._fields:
                field_index.clear()
            self._documents.clear()

    def _insert(self, document: SourceDocument) -> None:
        path = document.path
        previous = self._documents.put(document)
        if previous is not None:
            # Re-index: stale keys from the prior version must not survive
            self._remove_entries(path)

        self._tokens.put_all(indexable_tokens(document.content, self._min_token_length), path)
        self._types.put_all(document.type_names, path)
        if document.package:
            self._packages.put(document.package, path)
        self._methods.put_all(document.method_names, path)
        self._imports.put_all(document.imports, path)

    def _remove_entries(self, path: str) -> None:
        for field_index in self._fields:
            field_index.remove(path)

    # Queries

    def search_content(
        self,
        text: Optional[str],
        case_sensitive: bool = False,
        whole_word: bool = False,
    ) -> List[SourceDocument]:
        """Find documents containing every token of text (AND semantics).

        Args:
            text: Search text. Tokenized with the same delimiter rule as content.
            case_sensitive: Require tokens (and the whole-word match) to match case.
            whole_word: Additionally require the original text to appear bounded
                by non-identifier characters.

        Returns:
            Matching documents ordered by path.
        """
        return self._resolve(self._match_tokens(text, case_sensitive, whole_word))

    def search(self, query: Optional[SearchQuery]) -> List[SourceDocument]:
        """Evaluate a structured query.

        Resolution order: base match (token index, or a linear regex scan when
        use_regex is set), include_packages, exclude_packages, max_results.

        Raises:
            QueryError: If use_regex is set and the text is not a valid pattern.
        """
        if query is None or not query.text or not query.text.strip():
            return []

        started = time.perf_counter()

        if query.use_regex:
            paths = self._scan_regex(query.text, query.case_sensitive, query.whole_word)
        else:
            paths = self._match_tokens(query.text, query.case_sensitive, query.whole_word)

        results = self._resolve(paths)

        if query.include_packages:
            results = [doc for doc in results if doc.package in query.include_packages]
        if query.exclude_packages:
            results = [doc for doc in results if doc.package not in query.exclude_packages]

        limit = query.max_results
        if limit is None and self._default_max_results > 0:
            limit = self._default_max_results
        if limit is not None:
            results = results[: max(limit, 0)]

        self._log_if_slow(query, started, len(results))
        return results

    def search_by_type(self, type_name: Optional[str]) -> List[SourceDocument]:
        """Documents declaring a type with exactly this name."""
        return self._resolve(self._types.get(type_name))

    def search_by_package(self, package_name: Optional[str]) -> List[SourceDocument]:
        """Documents declared in exactly this package."""
        return self._resolve(self._packages.get(package_name))

    def search_by_method(self, method_name: Optional[str]) -> List[SourceDocument]:
        """Documents declaring a method with exactly this name."""
        return self._resolve(self._methods.get(method_name))

    def search_by_import(self, pattern: Optional[str]) -> List[SourceDocument]:
        """Documents with at least one import containing pattern as a substring."""
        if not pattern:
            return []
        return self._resolve(self._imports.match_keys(pattern))

    # Introspection

    def get_statistics(self) -> IndexStatistics:
        """Point-in-time counts of documents and distinct keys per field."""
        return IndexStatistics(
            total_documents=len(self._documents),
            unique_tokens=len(self._tokens),
            unique_types=len(self._types),
            unique_packages=len(self._packages),
            unique_methods=len(self._methods),
            unique_imports=len(self._imports),
        )

    def get_document(self, path: str) -> Optional[SourceDocument]:
        return self._documents.get(path)

    def documents(self) -> List[SourceDocument]:
        """All cached documents ordered by path."""
        return sorted(self._documents.values(), key=lambda doc: doc.path)

    def __contains__(self, path: object) -> bool:
        return path in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    # Helpers

    def _match_tokens(
        self, text: Optional[str], case_sensitive: bool, whole_word: bool
    ) -> Set[str]:
        tokens = tokenize(text, case_sensitive)
        if not tokens:
            return set()

        # The token index is case-folded; short tokens are never indexed and
        # are checked against candidate content instead.
        indexed = {t.lower() for t in tokens if len(t) >= self._min_token_length}

        candidates: Optional[Set[str]] = None
        for token in sorted(indexed):
            postings = self._tokens.get(token)
            candidates = set(postings) if candidates is None else candidates & postings
            if not candidates:
                return set()

        if candidates is None:
            candidates = set(self._documents.paths())

        needs_scan = case_sensitive or len(indexed) < len({t.lower() for t in tokens})
        if needs_scan:
            candidates = {
                path
                for path in candidates
                if tokens <= tokenize(self._content_of(path), case_sensitive)
            }

        if whole_word and candidates:
            matcher = whole_word_pattern(text.strip(), case_sensitive)  # type: ignore[union-attr]
            candidates = {
                path for path in candidates if matcher.search(self._content_of(path))
            }

        return candidates

    def _scan_regex(self, pattern: str, case_sensitive: bool, whole_word: bool) -> Set[str]:
        flags = 0 if case_sensitive else re.IGNORECASE
        source = bounded(pattern) if whole_word else pattern
        try:
            compiled = re.compile(source, flags)
        except re.error as e:
            logger.warning(f"Invalid regex in search query {pattern!r}: {e}")
            raise QueryError(f"Invalid regular expression {pattern!r}: {e}", pattern) from e

        return {doc.path for doc in self._documents.values() if compiled.search(doc.content)}

    def _content_of(self, path: str) -> str:
        document = self._documents.get(path)
        return document.content if document is not None else ""

    def _resolve(self, paths: Iterable[str]) -> List[SourceDocument]:
        return self._documents.get_many(sorted(set(paths)))

    def _log_if_slow(self, query: SearchQuery, started: float, result_count: int) -> None:
        if self._slow_query_threshold_ms is None:
            return
        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > self._slow_query_threshold_ms:
            logger.warning(
                f"Slow search query {query.text!r} (regex={query.use_regex}): "
                f"{elapsed_ms:.1f}ms, {result_count} results"
            )
