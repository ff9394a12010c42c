"""Search strategies the router dispatches to."""

from __future__ import annotations

import logging
import time

from smite.search.lexical import LexicalSearch
from smite.search.mgrep import MgrepClient
from smite.search.models import SearchResult, SearchStrategy, StrategyResult

logger = logging.getLogger("smite.search.strategies")


class Strategy:
    """Base class: run a query, report a StrategyResult, never raise."""

    name: SearchStrategy

    def execute(
        self,
        query: str,
        max_results: int = 50,
        timeout: float | None = None,
        context_lines: int = 2,
        regex: bool = False,
    ) -> StrategyResult:
        raise NotImplementedError


class LiteralStrategy(Strategy):
    """In-process substring/regex matching."""

    name = SearchStrategy.LITERAL

    def __init__(self, search: LexicalSearch) -> None:
        self.search = search

    def execute(self, query, max_results=50, timeout=None, context_lines=2, regex=False):
        start = time.perf_counter()
        results = self.search.search(
            query, max_results=max_results, context_lines=context_lines, regex=regex
        )
        return StrategyResult(
            strategy=self.name,
            success=True,
            results=results,
            score=results[0].score if results else 0.0,
            execution_time=time.perf_counter() - start,
            metadata={"total_results": len(results)},
        )


class SemanticStrategy(Strategy):
    """Delegates to the external mgrep binary."""

    name = SearchStrategy.SEMANTIC

    def __init__(self, client: MgrepClient) -> None:
        self.client = client

    def execute(self, query, max_results=50, timeout=None, context_lines=2, regex=False):
        start = time.perf_counter()
        response = self.client.search(query, max_results=max_results, timeout=timeout)
        results = sorted(response.results, key=lambda r: r.score, reverse=True)
        return StrategyResult(
            strategy=self.name,
            success=response.success,
            results=results,
            score=results[0].score if results else 0.0,
            execution_time=time.perf_counter() - start,
            error=response.error,
            metadata={"total_results": len(results)},
        )


class HybridStrategy(Strategy):
    """Runs semantic and literal search and merges by file:line.

    Succeeds if either side succeeds.
    """

    name = SearchStrategy.HYBRID

    def __init__(self, semantic: SemanticStrategy, literal: LiteralStrategy) -> None:
        self.semantic = semantic
        self.literal = literal

    def execute(self, query, max_results=50, timeout=None, context_lines=2, regex=False):
        start = time.perf_counter()
        semantic = _guarded(self.semantic, query, max_results, timeout, context_lines, regex)
        literal = _guarded(self.literal, query, max_results, timeout, context_lines, regex)

        merged = merge_results(semantic.results, literal.results)
        errors = [r.error for r in (semantic, literal) if not r.success and r.error]
        return StrategyResult(
            strategy=self.name,
            success=semantic.success or literal.success,
            results=merged[:max_results],
            score=max(semantic.score, literal.score),
            execution_time=time.perf_counter() - start,
            error="; ".join(errors) if not (semantic.success or literal.success) else "",
            metadata={
                "semantic_results": len(semantic.results),
                "literal_results": len(literal.results),
                "merged_results": len(merged),
                "partial_errors": errors,
            },
        )


def merge_results(*result_sets: list[SearchResult]) -> list[SearchResult]:
    """Deduplicate by file:line keeping the higher score, sorted by score."""
    merged: dict[str, SearchResult] = {}
    for results in result_sets:
        for result in results:
            existing = merged.get(result.key)
            if existing is None or result.score > existing.score:
                merged[result.key] = result
    return sorted(merged.values(), key=lambda r: r.score, reverse=True)


def _guarded(strategy: Strategy, query, max_results, timeout, context_lines, regex) -> StrategyResult:
    """Run one side of a hybrid search; an exception becomes a failed result."""
    try:
        return strategy.execute(query, max_results, timeout, context_lines, regex)
    except Exception as e:
        logger.warning("%s search raised: %s", strategy.name.value, e)
        return StrategyResult(strategy=strategy.name, success=False, error=str(e) or e.__class__.__name__)
