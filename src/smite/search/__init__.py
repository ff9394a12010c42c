"""Code search: query routing, semantic caching, and search backends."""

from smite.search.cache import CacheEntry, CacheStats, SemanticCache
from smite.search.classifier import QueryAnalyzer, classify_query
from smite.search.formatting import format_results
from smite.search.keywords import cosine_similarity, extract_keywords
from smite.search.lexical import LexicalSearch
from smite.search.mgrep import MgrepClient
from smite.search.models import (
    BackendResponse,
    QueryAnalysis,
    SearchFilters,
    SearchOptions,
    SearchResponse,
    SearchResult,
    SearchStrategy,
    StrategyResult,
)
from smite.search.router import SearchRouter

__all__ = [
    "BackendResponse",
    "CacheEntry",
    "CacheStats",
    "LexicalSearch",
    "MgrepClient",
    "QueryAnalysis",
    "QueryAnalyzer",
    "SearchFilters",
    "SearchOptions",
    "SearchResponse",
    "SearchResult",
    "SearchRouter",
    "SearchStrategy",
    "SemanticCache",
    "StrategyResult",
    "classify_query",
    "cosine_similarity",
    "extract_keywords",
    "format_results",
]
