"""Tests for keyword extraction and similarity."""

from __future__ import annotations

import pytest

from smite.search.keywords import (
    cosine_similarity,
    extract_keywords,
    jaccard_similarity,
    keyword_cosine,
    top_keywords,
)


class TestExtractKeywords:
    def test_normalizes_and_filters(self):
        keywords = extract_keywords("Find the AUTH_token in src/auth.ts, ok?")
        assert keywords == frozenset({"find", "the", "auth", "token", "src"})

    def test_min_length(self):
        assert extract_keywords("a bb ccc dddd", min_length=4) == frozenset({"dddd"})

    def test_stop_words(self):
        assert extract_keywords("find the thing", stop_words={"the"}) == frozenset({"find", "thing"})

    def test_top_keywords(self):
        assert top_keywords("cache cache miss cache miss hit", limit=2) == ["cache", "miss"]


class TestSimilarity:
    def test_identical_text(self):
        assert cosine_similarity("find auth function", "find auth function") == pytest.approx(1.0)

    def test_symmetric(self):
        a, b = "find auth function", "find the auth function quickly"
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_known_value(self):
        # 3 shared keywords, sizes 3 and 4
        assert cosine_similarity("find auth function", "find the auth function") == pytest.approx(0.866, abs=1e-3)

    def test_disjoint(self):
        assert cosine_similarity("alpha beta", "gamma delta") == 0.0

    def test_empty(self):
        assert cosine_similarity("", "anything here") == 0.0
        assert keyword_cosine(frozenset(), frozenset({"x"})) == 0.0

    def test_jaccard(self):
        assert jaccard_similarity("find auth function", "find the auth function") == pytest.approx(0.75)
