"""
Query processor producing normalized query variants for lexical and semantic search.

Features:
- Unicode-aware punctuation and symbol stripping (curly quotes, dashes, ...)
- Technology suffix expansion ("reactjs" -> "reactjs", "react", "js")
- Digit/letter boundary splitting ("web3" -> "web", "3")
- Condensed forms for matching across spacing and punctuation differences
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable, List, Sequence

import structlog

from docsearch.domain.entities import QueryVariants

logger = structlog.get_logger(__name__)

KNOWN_SUFFIXES = ("js", "ts", "py", "rb", "go", "net", "sql", "db")

_DIGIT_LETTER_BOUNDARY = re.compile(r"(?<=\d)(?=[^\W\d_])|(?<=[^\W\d_])(?=\d)")


def _is_punctuation_or_symbol(char: str) -> bool:
    return unicodedata.category(char)[0] in ("P", "S")


def _dedupe(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


class QueryProcessor:
    """Turns a raw query into the variants used by keyword and vector search."""

    def __init__(self, suffixes: Sequence[str] = KNOWN_SUFFIXES):
        self._suffixes = tuple(suffixes)

    def prepare(self, raw: str) -> QueryVariants:
        """Build every normalized variant of a raw query.

        Empty or whitespace-only input yields empty variants rather than an error.
        """
        trimmed = (raw or "").strip()
        if not trimmed:
            return QueryVariants()

        whitespace_normalized = " ".join(trimmed.split())
        stripped = "".join(" " if _is_punctuation_or_symbol(ch) else ch for ch in trimmed)

        raw_tokens = _dedupe(stripped.split())
        expanded = _dedupe(
            part
            for token in raw_tokens
            for part in self.expand_token(token.lower())
        )

        normalized = " ".join(expanded)
        lower_trimmed = trimmed.lower()
        lower_normalized = normalized.lower()

        variants = QueryVariants(
            trimmed=trimmed,
            normalized=normalized,
            lower_trimmed=lower_trimmed,
            lower_normalized=lower_normalized,
            condensed_trimmed=self.condense(lower_trimmed),
            condensed_normalized=self.condense(lower_normalized),
            tokens=tuple(raw_tokens),
            lower_tokens=tuple(expanded),
            embedding_text=normalized or whitespace_normalized or trimmed,
        )
        logger.debug("Query prepared", query=trimmed, token_count=len(expanded))
        return variants

    def expand_token(self, token: str) -> List[str]:
        """Return the token followed by its suffix and digit-boundary expansions."""
        parts = [token]

        for suffix in self._suffixes:
            if token.endswith(suffix) and len(token) > len(suffix):
                parts.append(token[: -len(suffix)])
                parts.append(suffix)

        for piece in _DIGIT_LETTER_BOUNDARY.split(token):
            if piece and piece != token:
                parts.append(piece)

        return parts

    @staticmethod
    def condense(value: str) -> str:
        """Lowercase and drop every non-alphanumeric character."""
        return "".join(ch for ch in (value or "").lower() if ch.isalnum())

    @staticmethod
    def calculate_token_coverage(source: str, tokens: Sequence[str]) -> float:
        """Fraction of tokens occurring as case-insensitive substrings of source."""
        if not tokens:
            return 0.0
        haystack = (source or "").lower()
        matched = sum(1 for token in tokens if token and token.lower() in haystack)
        return matched / len(tokens)


__all__ = ["QueryProcessor", "KNOWN_SUFFIXES"]
