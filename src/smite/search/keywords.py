"""Keyword extraction and lexical similarity.

A cheap, deterministic stand-in for semantic relatedness: each text becomes
a set of normalized keywords, and two texts are compared as binary vectors
over their joint vocabulary. No external models are involved.
"""

from __future__ import annotations

import math
import re
from collections import Counter

_SPLIT_RE = re.compile(r"[^a-z0-9]+")

DEFAULT_MIN_LENGTH = 3


def _tokens(text: str, min_length: int, stop_words: set[str] | frozenset[str] | None) -> list[str]:
    tokens = [t for t in _SPLIT_RE.split(text.lower()) if len(t) >= min_length]
    if stop_words:
        tokens = [t for t in tokens if t not in stop_words]
    return tokens


def extract_keywords(
    text: str,
    min_length: int = DEFAULT_MIN_LENGTH,
    stop_words: set[str] | frozenset[str] | None = None,
) -> frozenset[str]:
    """Lowercase, split on non-alphanumerics, drop short tokens, deduplicate."""
    return frozenset(_tokens(text, min_length, stop_words))


def top_keywords(text: str, limit: int = 10, min_length: int = DEFAULT_MIN_LENGTH) -> list[str]:
    """Most frequent keywords first; first occurrence breaks ties."""
    counts = Counter(_tokens(text, min_length, None))
    return [word for word, _ in counts.most_common(limit)]


def keyword_cosine(a: frozenset[str], b: frozenset[str]) -> float:
    """Cosine of two binary keyword vectors: |A∩B| / sqrt(|A|·|B|)."""
    if not a or not b:
        return 0.0
    score = len(a & b) / math.sqrt(len(a) * len(b))
    return min(1.0, score)


def cosine_similarity(text_a: str, text_b: str, min_length: int = DEFAULT_MIN_LENGTH) -> float:
    """Similarity of two texts in [0, 1]; 0.0 if either has no keywords."""
    return keyword_cosine(
        extract_keywords(text_a, min_length), extract_keywords(text_b, min_length)
    )


def jaccard_similarity(text_a: str, text_b: str, min_length: int = DEFAULT_MIN_LENGTH) -> float:
    """|A∩B| / |A∪B| over keyword sets."""
    a = extract_keywords(text_a, min_length)
    b = extract_keywords(text_b, min_length)
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)
