"""Query classifier for strategy routing.

Maps a raw query to one of the concrete strategies (LITERAL, SEMANTIC,
HYBRID) using surface features only. The mapping is deterministic: the
same text always routes the same way.

Decision rules, in order:
  1. Quote characters or regex metacharacters → LITERAL.
     The user is asking for an exact string or pattern.
  2. Natural-language phrasing → SEMANTIC.
     At least three words, no code-like identifiers, and either a leading
     question/intent word ("how", "where", "find", ...) or a trailing "?".
  3. Anything else → HYBRID.
"""

from __future__ import annotations

import re

from smite.search.models import QueryAnalysis, SearchStrategy

_QUOTE_CHARS = frozenset("\"'`")
_REGEX_CHARS = frozenset("\\^$*+[]{}()|")

# Words that open a natural-language request
_INTENT_WORDS = frozenset({
    "how", "what", "where", "why", "when", "which", "who",
    "find", "show", "explain", "list", "locate", "describe",
    "does", "do", "is", "are", "can", "should",
})

_CAMEL_RE = re.compile(r"\b[a-z]+[A-Z]\w*\b|\b[A-Z][a-z]+[A-Z]\w*\b")
_SNAKE_RE = re.compile(r"\b[A-Za-z][A-Za-z0-9]*_[A-Za-z0-9_]+\b")
_DOTTED_RE = re.compile(r"\b\w+\.\w+\b")
_WORD_RE = re.compile(r"[A-Za-z0-9_.]+")

_ALTERNATIVES: dict[SearchStrategy, list[SearchStrategy]] = {
    SearchStrategy.LITERAL: [SearchStrategy.HYBRID, SearchStrategy.SEMANTIC],
    SearchStrategy.SEMANTIC: [SearchStrategy.HYBRID, SearchStrategy.LITERAL],
    SearchStrategy.HYBRID: [SearchStrategy.LITERAL, SearchStrategy.SEMANTIC],
}


def classify_query(query: str) -> SearchStrategy:
    """Resolve AUTO to a concrete strategy."""
    return QueryAnalyzer().analyze(query).recommended_strategy


class QueryAnalyzer:
    """Classifies search queries into a recommended strategy.

    Usage:
        analysis = QueryAnalyzer().analyze("how does session refresh work?")
        # analysis.recommended_strategy == SearchStrategy.SEMANTIC
    """

    def analyze(self, query: str) -> QueryAnalysis:
        features = self._extract_features(query)

        if features["has_quotes"] or features["regex_chars"]:
            query_type = "literal"
            strategy = SearchStrategy.LITERAL
            confidence = 1.0 if features["has_quotes"] else min(1.0, 0.6 + 0.1 * features["regex_chars"])
        elif features["natural_language"]:
            query_type = "natural_language"
            strategy = SearchStrategy.SEMANTIC
            confidence = min(1.0, 0.5 + 0.1 * features["word_count"])
        else:
            query_type = "code"
            strategy = SearchStrategy.HYBRID
            confidence = 0.7 if features["code_identifiers"] else 0.5

        return QueryAnalysis(
            query_type=query_type,
            confidence=round(confidence, 3),
            recommended_strategy=strategy,
            alternative_strategies=list(_ALTERNATIVES[strategy]),
            features=features,
        )

    def _extract_features(self, query: str) -> dict:
        stripped = query.strip()
        words = _WORD_RE.findall(stripped)
        first = words[0].lower() if words else ""

        identifiers = (
            _CAMEL_RE.findall(stripped)
            + _SNAKE_RE.findall(stripped)
            + _DOTTED_RE.findall(stripped)
        )
        has_intent = first in _INTENT_WORDS or stripped.endswith("?")
        regex_chars = sum(1 for ch in stripped if ch in _REGEX_CHARS)

        return {
            "word_count": len(words),
            "has_quotes": any(ch in _QUOTE_CHARS for ch in stripped),
            "regex_chars": regex_chars,
            "code_identifiers": len(identifiers),
            "has_intent": has_intent,
            "natural_language": len(words) >= 3 and not identifiers and has_intent,
        }
