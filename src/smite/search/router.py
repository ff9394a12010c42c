"""Search router: cache, classify, dispatch, fall back, filter.

SearchRouter.search() is the single entry point for code search. It never
raises; every failure comes back as a SearchResponse with success=False.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from smite.config import BackendConfig, IndexerConfig, ProjectConfig, RouterConfig
from smite.search.cache import SemanticCache
from smite.search.classifier import QueryAnalyzer
from smite.search.filters import apply_filters
from smite.search.lexical import LexicalSearch
from smite.search.mgrep import MgrepClient
from smite.search.models import (
    QueryAnalysis,
    SearchOptions,
    SearchResponse,
    SearchResult,
    SearchStrategy,
    StrategyResult,
)
from smite.search.strategies import (
    HybridStrategy,
    LiteralStrategy,
    SemanticStrategy,
    Strategy,
)

logger = logging.getLogger("smite.search.router")


def estimate_tokens(text: str) -> int:
    """Rough token estimate (~4 chars per token)."""
    return max(1, len(text) // 4)


def build_strategies(
    root: Path,
    backend: BackendConfig | None = None,
    indexer: IndexerConfig | None = None,
) -> dict[SearchStrategy, Strategy]:
    backend = backend or BackendConfig()
    literal = LiteralStrategy(LexicalSearch(root, indexer))
    semantic = SemanticStrategy(
        MgrepClient(executable=backend.executable, timeout=backend.timeout, cwd=root)
    )
    return {
        SearchStrategy.LITERAL: literal,
        SearchStrategy.SEMANTIC: semantic,
        SearchStrategy.HYBRID: HybridStrategy(semantic, literal),
    }


class SearchRouter:
    """Routes queries to a search strategy with caching and fallback.

    Usage:
        router = SearchRouter(Path("."))
        response = router.search("how is the session refreshed?")
        for result in response.results:
            print(result.file_path, result.line_number, result.score)
    """

    def __init__(
        self,
        root: Path,
        config: RouterConfig | None = None,
        cache: SemanticCache | None = None,
        strategies: dict[SearchStrategy, Strategy] | None = None,
        analyzer: QueryAnalyzer | None = None,
        backend: BackendConfig | None = None,
        indexer: IndexerConfig | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.config = config or RouterConfig()
        self.cache = cache if cache is not None else SemanticCache()
        self.strategies = strategies or build_strategies(self.root, backend, indexer)
        self.analyzer = analyzer or QueryAnalyzer()

    @classmethod
    def from_config(cls, root: Path, config: ProjectConfig, **kwargs: Any) -> SearchRouter:
        kwargs.setdefault("cache", SemanticCache.from_config(config.cache))
        return cls(
            root,
            config=config.router,
            backend=config.backend,
            indexer=config.indexer,
            **kwargs,
        )

    def search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        """Run a search. Never raises."""
        options = options or SearchOptions()
        start = time.perf_counter()
        try:
            return self._search(query, options, start)
        except Exception as e:
            logger.exception("Search failed for %r", query)
            return SearchResponse(
                results=[],
                strategy=options.strategy,
                query_analysis=QueryAnalysis(
                    query_type="unknown",
                    confidence=0.0,
                    recommended_strategy=options.strategy,
                ),
                execution_time=time.perf_counter() - start,
                success=False,
                error=str(e) or e.__class__.__name__,
            )

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self):
        return self.cache.stats()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _search(self, query: str, options: SearchOptions, start: float) -> SearchResponse:
        max_results = options.max_results or self.config.default_max_results
        use_cache = self.config.cache_enabled if options.use_cache is None else options.use_cache

        if not query.strip():
            return SearchResponse(
                results=[],
                strategy=options.strategy,
                query_analysis=self.analyzer.analyze(query),
                execution_time=time.perf_counter() - start,
                success=False,
                error="Empty query",
            )

        scope_key = self._scope_key(options, max_results)
        if use_cache:
            # scope key pins root, strategy and filters
            entry = self.cache.get(query, scope_key, cross_scope=False)
            if entry is not None:
                payload = entry.content
                analysis = self.analyzer.analyze(query)
                logger.debug("Cache hit for %r (entry %s)", query, entry.id)
                return SearchResponse(
                    results=list(payload["results"]),
                    strategy=self._resolve(options, analysis),
                    query_analysis=analysis,
                    execution_time=time.perf_counter() - start,
                    from_cache=True,
                )

        analysis = self.analyzer.analyze(query)
        chosen = self._resolve(options, analysis)

        attempts = self._execute_with_fallback(query, chosen, options, analysis, max_results)
        final = attempts[-1]
        for attempt in attempts:
            if attempt.success and attempt.results:
                final = attempt
                break
        else:
            successes = [a for a in attempts if a.success]
            if successes:
                final = successes[0]

        if not final.success:
            return SearchResponse(
                results=[],
                strategy=final.strategy,
                query_analysis=analysis,
                execution_time=time.perf_counter() - start,
                success=False,
                error=final.error or f"{final.strategy.value} search failed",
                strategy_results=attempts,
            )

        results = self._post_process(final.results, options, max_results)
        if use_cache:
            payload = {"results": results, "strategy": final.strategy, "analysis": analysis}
            self.cache.set(query, scope_key, payload, cost=self._cost(results))

        return SearchResponse(
            results=results,
            strategy=final.strategy,
            query_analysis=analysis,
            execution_time=time.perf_counter() - start,
            strategy_results=attempts,
        )

    @staticmethod
    def _resolve(options: SearchOptions, analysis: QueryAnalysis) -> SearchStrategy:
        if options.strategy == SearchStrategy.AUTO:
            return analysis.recommended_strategy
        return options.strategy

    def _execute_with_fallback(
        self,
        query: str,
        chosen: SearchStrategy,
        options: SearchOptions,
        analysis: QueryAnalysis,
        max_results: int,
    ) -> list[StrategyResult]:
        order = [chosen]
        if options.strategy == SearchStrategy.AUTO and self.config.enable_fallback:
            fallbacks = [s for s in analysis.alternative_strategies if s != chosen]
            order.extend(fallbacks[: self.config.max_fallbacks])

        attempts: list[StrategyResult] = []
        for strategy in order:
            result = self._run_strategy(strategy, query, options, max_results)
            attempts.append(result)
            if result.success and result.results:
                break
            if strategy is not order[-1]:
                logger.info(
                    "%s search %s for %r, falling back",
                    strategy.value,
                    "failed" if not result.success else "returned nothing",
                    query,
                )
        return attempts

    def _run_strategy(
        self,
        strategy: SearchStrategy,
        query: str,
        options: SearchOptions,
        max_results: int,
    ) -> StrategyResult:
        impl = self.strategies.get(strategy)
        if impl is None:
            return StrategyResult(
                strategy=strategy, success=False, error=f"No {strategy.value} strategy configured"
            )
        try:
            return impl.execute(
                query,
                max_results=max_results,
                timeout=options.timeout or self.config.default_timeout,
                context_lines=(
                    self.config.context_lines
                    if options.context_lines is None
                    else options.context_lines
                ),
                regex=options.regex,
            )
        except Exception as e:
            logger.warning("%s strategy raised: %s", strategy.value, e)
            return StrategyResult(strategy=strategy, success=False, error=str(e))

    def _post_process(
        self, results: list[SearchResult], options: SearchOptions, max_results: int
    ) -> list[SearchResult]:
        min_score = self.config.min_score if options.min_score is None else options.min_score
        kept = [r for r in results if r.score >= min_score]
        kept = apply_filters(kept, options.filters, self.root)
        return kept[:max_results]

    def _scope_key(self, options: SearchOptions, max_results: int) -> str:
        parts = [
            str(self.root),
            options.strategy.value,
            f"regex={options.regex}",
            f"max={max_results}",
            f"min={options.min_score}",
        ]
        if not options.filters.is_empty():
            parts.append(options.filters.model_dump_json(exclude_defaults=True))
        return "|".join(parts)

    @staticmethod
    def _cost(results: list[SearchResult]) -> int:
        return estimate_tokens("".join(r.content for r in results))
