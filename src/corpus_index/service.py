# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""CorpusIndexService - business logic layer over the index and analyzers.

Key Responsibilities:
- Keep the document repository and the search index in step
- Apply configuration (token length, result caps, global package exclusions)
- Run dependency, impact and import analyses over the stored corpus
- Manage component lifecycle
"""

import logging
from typing import Iterable, List, Optional

from corpus_index.analysis import analyze_type_change_impact, optimize_imports
from corpus_index.config import Config
from corpus_index.dependency_graph import analyze_dependencies
from corpus_index.logging_setup import structured_fields
from corpus_index.models import (
    DependencyAnalysisResult,
    ImpactAnalysisResult,
    ImportOptimizationResult,
    IndexStatistics,
    SearchQuery,
    SourceDocument,
)
from corpus_index.search_index import SearchIndex
from corpus_index.storage import DocumentRepository, InMemoryDocumentRepository

logger = logging.getLogger(__name__)


class CorpusIndexService:
    """Coordinates the document repository, search index and analyzers.

    Owned Components:
    - DocumentRepository: Source of truth for documents
    - SearchIndex: Derived, rebuildable lookup structure

    The repository is written first and the index second, so a failed index
    update never loses a document: reindex_all() restores consistency.

    Usage:
        service = CorpusIndexService(Config())
        service.add_document(SourceDocument(path="A.java", content="class A"))
        docs = service.search_content("class")
        result = service.analyze_dependencies()
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        repository: Optional[DocumentRepository] = None,
        index: Optional[SearchIndex] = None,
    ):
        """Initialize the service with its dependencies.

        Args:
            config: Configuration object (default: loads from default location)
            repository: Document repository (default: InMemoryDocumentRepository)
            index: Search index (default: built from config)
        """
        self.config = config if config is not None else Config()
        self.repository = repository if repository is not None else InMemoryDocumentRepository()
        self.index = (
            index
            if index is not None
            else SearchIndex(
                min_token_length=self.config.min_token_length,
                default_max_results=self.config.default_max_results,
                slow_query_threshold_ms=self.config.slow_query_threshold_ms,
            )
        )

        # Documents already in the repository are searchable immediately
        existing = self.repository.find_all()
        if existing:
            self.index.rebuild(existing)

        logger.info(f"CorpusIndexService initialized with {len(existing)} documents")

    # Corpus maintenance

    def add_document(self, document: SourceDocument) -> None:
        """Store and index a document, replacing any previous version.

        Raises:
            ValueError: If the repository rejects the document.
        """
        self.repository.save(document)
        self.index.index_file(document)

    def add_documents(self, documents: Iterable[SourceDocument]) -> int:
        """Store and index several documents.

        Returns:
            Number of documents added.
        """
        count = 0
        for document in documents:
            self.add_document(document)
            count += 1
        logger.debug(f"Added {count} documents")
        return count

    def remove_document(self, path: str) -> bool:
        """Remove a document from the repository and the index.

        Returns:
            True if the repository held the document.
        """
        removed = self.repository.delete(path)
        self.index.remove_file(path)
        return removed

    def reindex_all(self) -> IndexStatistics:
        """Rebuild the search index from the repository contents."""
        self.index.rebuild(self.repository.find_all())
        statistics = self.index.get_statistics()
        if self.config.log_statistics_on_rebuild:
            logger.info(
                statistics.to_summary(), extra=structured_fields(**statistics.to_dict())
            )
        return statistics

    # Queries

    def search(self, query: SearchQuery) -> List[SourceDocument]:
        """Structured search with configured package exclusions applied.

        Raises:
            QueryError: If a regex query has an invalid pattern.
        """
        if self.config.exclude_packages:
            query = SearchQuery(
                text=query.text,
                case_sensitive=query.case_sensitive,
                whole_word=query.whole_word,
                use_regex=query.use_regex,
                include_packages=set(query.include_packages),
                exclude_packages=set(query.exclude_packages) | set(self.config.exclude_packages),
                max_results=query.max_results,
            )
        return self.index.search(query)

    def search_content(
        self, text: str, case_sensitive: bool = False, whole_word: bool = False
    ) -> List[SourceDocument]:
        return self.index.search_content(text, case_sensitive, whole_word)

    def search_by_type(self, type_name: str) -> List[SourceDocument]:
        return self.index.search_by_type(type_name)

    def search_by_package(self, package_name: str) -> List[SourceDocument]:
        return self.index.search_by_package(package_name)

    def search_by_method(self, method_name: str) -> List[SourceDocument]:
        return self.index.search_by_method(method_name)

    def search_by_import(self, pattern: str) -> List[SourceDocument]:
        return self.index.search_by_import(pattern)

    def get_statistics(self) -> IndexStatistics:
        return self.index.get_statistics()

    # Analyses

    def analyze_dependencies(
        self, documents: Optional[Iterable[SourceDocument]] = None
    ) -> DependencyAnalysisResult:
        """Dependency graph and cycles for documents (default: whole repository)."""
        batch = list(documents) if documents is not None else self.repository.find_all()
        result = analyze_dependencies(batch)
        if result.has_cycles:
            logger.info(
                f"Found {len(result.cycles)} circular dependencies "
                f"across {len(result.files_in_cycles())} documents",
                extra=structured_fields(
                    total_cycles=len(result.cycles),
                    files_in_cycles=sorted(result.files_in_cycles()),
                ),
            )
        return result

    def analyze_type_change_impact(self, type_name: str) -> ImpactAnalysisResult:
        return analyze_type_change_impact(self.repository.find_all(), type_name)

    def optimize_imports(self, path: str) -> Optional[ImportOptimizationResult]:
        """Import suggestions for the stored document at path (None if unknown)."""
        document = self.repository.get(path)
        if document is None:
            return None
        return optimize_imports(document)

    def shutdown(self) -> None:
        """Release index memory. The repository is left untouched."""
        logger.info("CorpusIndexService shutting down...")
        self.index.clear()
        logger.info("CorpusIndexService shutdown complete")
