# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tokenization rules shared by indexing and querying.

Tokens are runs of identifier characters ``[A-Za-z0-9_$]``. The minimum length
rule applies only to indexed content, never to query text, so that short
query terms still reach the lookup.
"""

import re
from typing import Optional, Pattern, Set

# Any run of characters that cannot appear in an identifier
TOKEN_DELIMITER = re.compile(r"[^A-Za-z0-9_$]+")

# Tokens shorter than this are not written to the content index
MIN_TOKEN_LENGTH = 3

_IDENTIFIER_CHARS = r"A-Za-z0-9_$"


def tokenize(text: Optional[str], case_sensitive: bool = False) -> Set[str]:
    """Split text into a set of tokens.

    Args:
        text: Text to split. None or empty text yields an empty set.
        case_sensitive: Keep the original case when True, lowercase otherwise.

    Returns:
        Set of non-empty tokens.
    """
    if not text:
        return set()
    if not case_sensitive:
        text = text.lower()
    return {token for token in TOKEN_DELIMITER.split(text) if token}


def indexable_tokens(text: Optional[str], min_length: int = MIN_TOKEN_LENGTH) -> Set[str]:
    """Lowercased content tokens long enough to be indexed."""
    return {token for token in tokenize(text) if len(token) >= min_length}


def bounded(pattern: str) -> str:
    """Wrap a regex so it only matches between non-identifier characters."""
    return f"(?<![{_IDENTIFIER_CHARS}])(?:{pattern})(?![{_IDENTIFIER_CHARS}])"


def whole_word_pattern(text: str, case_sensitive: bool = False) -> Pattern[str]:
    """Compile a whole-word matcher for the literal text.

    Boundaries are identifier boundaries, so "cat" matches "the cat sat" and
    "cat.name" but not "category" or "$cat".
    """
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(bounded(re.escape(text)), flags)
