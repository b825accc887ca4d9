# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Multi-field search index and dependency cycle detection for source corpora."""

from .analysis import analyze_type_change_impact, optimize_imports
from .config import Config, ConfigurationError
from .dependency_graph import CycleDetector, DependencyGraphBuilder, analyze_dependencies
from .field_index import DocumentCache, FieldIndex
from .models import (
    DependencyAnalysisResult,
    ImpactAnalysisResult,
    ImportOptimizationResult,
    IndexStatistics,
    SearchQuery,
    SourceDocument,
)
from .search_index import QueryError, SearchIndex
from .service import CorpusIndexService
from .storage import DocumentRepository, InMemoryDocumentRepository
from .tokenizer import tokenize

__version__ = "0.1.0"

__all__ = [
    "SourceDocument",
    "SearchQuery",
    "IndexStatistics",
    "DependencyAnalysisResult",
    "ImpactAnalysisResult",
    "ImportOptimizationResult",
    "FieldIndex",
    "DocumentCache",
    "SearchIndex",
    "QueryError",
    "tokenize",
    "DependencyGraphBuilder",
    "CycleDetector",
    "analyze_dependencies",
    "analyze_type_change_impact",
    "optimize_imports",
    "DocumentRepository",
    "InMemoryDocumentRepository",
    "CorpusIndexService",
    "Config",
    "ConfigurationError",
]

# Conditional import for MCP server (requires Python 3.10+ and mcp package)
try:
    from .mcp_server import CorpusIndexMCPServer

    __all__.append("CorpusIndexMCPServer")
except ImportError:
    # MCP package not available
    pass
