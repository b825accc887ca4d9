# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Corpus-level analyses built on document fields.

- analyze_type_change_impact: which documents are affected if a type changes
- optimize_imports: unused, wildcard and static-import suggestions for a file

Both are heuristics over extracted fields and raw content; there is no
compiled symbol information behind them.
"""

import logging
import re
from typing import Dict, Iterable, Optional, Set

from corpus_index.dependency_graph import WILDCARD_SUFFIX
from corpus_index.models import ImpactAnalysisResult, ImportOptimizationResult, SourceDocument
from corpus_index.tokenizer import whole_word_pattern

logger = logging.getLogger(__name__)

# Type.method( call sites, e.g. "Collections.sort("
STATIC_CALL_PATTERN = re.compile(r"([A-Z][a-zA-Z0-9]+)\.([a-z][a-zA-Z0-9]+)\(")

# Calls seen at least this often are suggested as static imports
STATIC_IMPORT_THRESHOLD = 3

IMPORT_REFERENCE = "Import reference"
CONTENT_REFERENCE = "Content reference"


def analyze_type_change_impact(
    documents: Optional[Iterable[SourceDocument]], type_name: str
) -> ImpactAnalysisResult:
    """Find documents that would be affected by changing type_name.

    A document is impacted when one of its imports contains the type name, or
    when its content mentions the type as a whole word. Imports always count,
    even in a document that declares a type of the same simple name. Only the
    content check skips the declaring document, whose own declaration would
    otherwise match.

    type_name may be simple ("Order") or package-qualified ("com.x.Order"); a
    qualified name only treats the document in that package as declaring it.
    """
    result = ImpactAnalysisResult(changed_type=type_name)
    if not type_name:
        return result

    matcher = whole_word_pattern(type_name, case_sensitive=True)
    for document in documents or ():
        if document is None or not document.path:
            continue
        if any(type_name in imp for imp in document.imports):
            result.add_impacted_file(document.path, IMPORT_REFERENCE)
        elif not _declares(document, type_name) and matcher.search(document.content):
            result.add_impacted_file(document.path, CONTENT_REFERENCE)

    logger.debug(
        f"Impact analysis for {type_name}: {len(result.impacted_files)} files impacted"
    )
    return result


def _declares(document: SourceDocument, type_name: str) -> bool:
    if "." in type_name:
        return type_name in document.qualified_type_names()
    return type_name in document.type_names


def find_unused_imports(document: SourceDocument) -> Set[str]:
    """Imports whose simple name never appears in the content.

    Wildcard imports are never reported as unused.
    """
    if not document.imports or not document.content:
        return set()

    unused: Set[str] = set()
    for imp in document.imports:
        simple_name = imp.rsplit(".", 1)[-1]
        if simple_name == "*":
            continue
        # The import line itself mentions the name; look past it
        matcher = whole_word_pattern(simple_name, case_sensitive=True)
        occurrences = len(matcher.findall(document.content))
        if occurrences <= _import_line_mentions(document.content, imp):
            unused.add(imp)
    return unused


def _import_line_mentions(content: str, import_name: str) -> int:
    pattern = re.compile(r"^\s*import\s+(?:static\s+)?" + re.escape(import_name) + r"\s*;", re.M)
    return len(pattern.findall(content))


def find_static_import_candidates(document: SourceDocument) -> Set[str]:
    """Type.method calls repeated often enough to deserve a static import."""
    counts: Dict[str, int] = {}
    for match in STATIC_CALL_PATTERN.finditer(document.content or ""):
        call = f"{match.group(1)}.{match.group(2)}"
        counts[call] = counts.get(call, 0) + 1
    return {
        f"static {call}" for call, count in counts.items() if count >= STATIC_IMPORT_THRESHOLD
    }


def optimize_imports(document: Optional[SourceDocument]) -> ImportOptimizationResult:
    """Suggest import clean-ups for a single document.

    Returns:
        ImportOptimizationResult with unused imports, wildcard imports,
        static-import candidates and the sorted import list minus unused ones.
    """
    result = ImportOptimizationResult()
    if document is None or not document.imports:
        return result

    unused = find_unused_imports(document)
    result.unused_imports = unused
    result.wildcard_imports = {imp for imp in document.imports if imp.endswith(WILDCARD_SUFFIX)}
    result.static_import_candidates = find_static_import_candidates(document)
    result.optimized_imports = sorted(
        {imp for imp in document.imports if imp not in unused}
    )

    logger.debug(
        f"Import optimization for {document.path}: {len(unused)} unused, "
        f"{len(result.wildcard_imports)} wildcards, "
        f"{len(result.static_import_candidates)} static candidates"
    )
    return result
