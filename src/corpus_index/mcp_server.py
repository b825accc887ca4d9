# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""MCP Server Protocol Layer for the corpus index.

This module implements the MCP protocol layer with ZERO business logic.
All business logic is delegated to CorpusIndexService.
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.session import ServerSession

from corpus_index.config import Config
from corpus_index.logging_setup import setup_logging
from corpus_index.models import SearchQuery, SourceDocument
from corpus_index.search_index import QueryError
from corpus_index.service import CorpusIndexService

logger = logging.getLogger(__name__)

SERVER_NAME = "corpus-index"

SEARCH_FIELDS = ("type", "package", "method", "import")


class CorpusIndexMCPServer:
    """MCP Protocol Layer for the corpus index.

    Responsibilities:
    - Initialize MCP server and register tools
    - Translate MCP requests to service calls
    - Format service responses as JSON-compatible tool results
    - Handle MCP server lifecycle

    Design Constraint: This layer contains ZERO business logic.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        service: Optional[CorpusIndexService] = None,
    ):
        """Initialize MCP server.

        Args:
            config: Configuration object. If None, loads from default location.
            service: Service layer instance. If None, creates default service.
        """
        if config is None:
            config = service.config if service is not None else Config()
        self.config = config

        self.service = service if service is not None else CorpusIndexService(config=config)

        self.mcp = FastMCP(name=SERVER_NAME)
        self._register_tools()

        logger.info("CorpusIndexMCPServer initialized")

    def _register_tools(self) -> None:
        """Register MCP tools with the server."""

        @self.mcp.tool()
        async def index_document(
            path: str,
            ctx: Context[ServerSession, None],
            content: str = "",
            package: Optional[str] = None,
            imports: Optional[List[str]] = None,
            type_names: Optional[List[str]] = None,
            method_names: Optional[List[str]] = None,
        ) -> Dict[str, Any]:
            """Add or replace a parsed source document in the index.

            Args:
                path: Document identifier (file path), unique in the corpus
                ctx: MCP context for logging
                content: Raw source text
                package: Declared package, if any
                imports: Import strings in declaration order
                type_names: Declared type names
                method_names: Declared method names

            Returns:
                Dictionary with the indexed path and current index statistics.
            """
            document = SourceDocument(
                path=path,
                content=content,
                package=package,
                imports=imports or (),
                type_names=type_names or (),
                method_names=method_names or (),
            )
            try:
                self.service.add_document(document)
            except ValueError as e:
                await ctx.error(f"Rejected document {path!r}: {e}")
                raise

            await ctx.info(f"Indexed {path}")
            return {"path": path, "statistics": self.service.get_statistics().to_dict()}

        @self.mcp.tool()
        async def remove_document(path: str, ctx: Context[ServerSession, None]) -> Dict[str, Any]:
            """Remove a document from the corpus and the index.

            Args:
                path: Document identifier
                ctx: MCP context for logging

            Returns:
                Dictionary with the path and whether a document was removed.
            """
            removed = self.service.remove_document(path)
            await ctx.info(f"Removed {path}" if removed else f"No document at {path}")
            return {"path": path, "removed": removed}

        @self.mcp.tool()
        async def search_content(
            text: str,
            ctx: Context[ServerSession, None],
            case_sensitive: bool = False,
            whole_word: bool = False,
            use_regex: bool = False,
            include_packages: Optional[List[str]] = None,
            exclude_packages: Optional[List[str]] = None,
            max_results: Optional[int] = None,
        ) -> Dict[str, Any]:
            """Search document content.

            All words of text must appear in a document (AND semantics) unless
            use_regex is set, in which case text is a regular expression.

            Returns:
                Dictionary with the matching paths in path order.

            Raises:
                QueryError: If use_regex is set and text is not a valid pattern.
            """
            query = SearchQuery(
                text=text,
                case_sensitive=case_sensitive,
                whole_word=whole_word,
                use_regex=use_regex,
                include_packages=set(include_packages or ()),
                exclude_packages=set(exclude_packages or ()),
                max_results=max_results,
            )
            try:
                documents = self.service.search(query)
            except QueryError as e:
                await ctx.error(f"Invalid query: {e}")
                raise

            return self._format_results(documents)

        @self.mcp.tool()
        async def search_by_field(
            field: str, value: str, ctx: Context[ServerSession, None]
        ) -> Dict[str, Any]:
            """Look up documents by declared type, package, method or import.

            Args:
                field: One of "type", "package", "method", "import"
                value: Exact name, or a substring for "import"
                ctx: MCP context for logging

            Returns:
                Dictionary with the matching paths in path order.
            """
            if field not in SEARCH_FIELDS:
                await ctx.error(f"Unknown search field {field!r}")
                raise ValueError(f"field must be one of {', '.join(SEARCH_FIELDS)}")

            lookup = {
                "type": self.service.search_by_type,
                "package": self.service.search_by_package,
                "method": self.service.search_by_method,
                "import": self.service.search_by_import,
            }[field]
            return self._format_results(lookup(value))

        @self.mcp.tool()
        async def analyze_dependencies(ctx: Context[ServerSession, None]) -> Dict[str, Any]:
            """Build the import dependency graph of the corpus and report cycles.

            Returns:
                Dictionary with metadata, files, dependencies and
                circular_dependencies.
            """
            result = self.service.analyze_dependencies()
            await ctx.info(f"Dependency analysis found {len(result.cycles)} cycles")
            return result.to_dict()

        @self.mcp.tool()
        async def get_index_statistics(ctx: Context[ServerSession, None]) -> Dict[str, Any]:
            """Current document and distinct-key counts of the search index."""
            statistics = self.service.get_statistics()
            return {"summary": statistics.to_summary(), **statistics.to_dict()}

        logger.info(
            "MCP tools registered: index_document, remove_document, search_content, "
            "search_by_field, analyze_dependencies, get_index_statistics"
        )

    @staticmethod
    def _format_results(documents: List[SourceDocument]) -> Dict[str, Any]:
        return {
            "count": len(documents),
            "results": [
                {"path": doc.path, "package": doc.package, "type_names": list(doc.type_names)}
                for doc in documents
            ],
        }

    def run(self, transport: str = "stdio") -> None:
        """Run the MCP server.

        Args:
            transport: "stdio" (default), "streamable-http" or "sse"
        """
        logger.info(f"Starting MCP server with {transport} transport")
        self.mcp.run(transport=transport)  # type: ignore[arg-type]

    def shutdown(self) -> None:
        """Shutdown the MCP server and cleanup resources."""
        logger.info("Shutting down MCP server")
        self.service.shutdown()


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Corpus Index MCP Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file. Default: ./.corpus_index.yml",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for JSON log files. Default: ./.corpus_index_logs",
    )
    parser.add_argument(
        "--transport",
        type=str,
        choices=["stdio", "streamable-http", "sse"],
        default="stdio",
        help="Transport type for MCP server. Default: stdio",
    )
    return parser.parse_args()


def main() -> None:
    """Main entry point for the MCP server."""
    args = parse_args()

    setup_logging(log_dir=args.log_dir)

    server = CorpusIndexMCPServer(config=Config(config_path=args.config))
    server.run(transport=args.transport)


if __name__ == "__main__":
    main()
