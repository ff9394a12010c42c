"""Search data models shared by the router, strategies and backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SearchStrategy(str, Enum):
    """How a query is executed."""

    AUTO = "auto"  # classify the query, then pick one of the below
    LITERAL = "literal"  # in-process substring/regex matcher
    SEMANTIC = "semantic"  # external mgrep subprocess
    HYBRID = "hybrid"  # both, merged


@dataclass(frozen=True)
class FileMetadata:
    language: str | None = None
    size: int | None = None
    last_modified: datetime | None = None


@dataclass(frozen=True)
class SearchResult:
    """A single search hit. line_number 0 means unknown."""

    file_path: str
    line_number: int = 0
    content: str = ""
    score: float = 0.0
    context_before: tuple[str, ...] = ()
    context_after: tuple[str, ...] = ()
    metadata: FileMetadata | None = None

    @property
    def key(self) -> str:
        return f"{self.file_path}:{self.line_number}"

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "file_path": self.file_path,
            "line_number": self.line_number,
            "content": self.content,
            "score": round(self.score, 4),
        }
        if self.context_before or self.context_after:
            data["context"] = {
                "before": list(self.context_before),
                "after": list(self.context_after),
            }
        if self.metadata is not None:
            data["metadata"] = {
                "language": self.metadata.language,
                "size": self.metadata.size,
                "last_modified": (
                    self.metadata.last_modified.isoformat()
                    if self.metadata.last_modified
                    else None
                ),
            }
        return data


@dataclass
class QueryAnalysis:
    """Result of query classification."""

    query_type: str  # "literal", "natural_language", "code"
    confidence: float  # 0-1
    recommended_strategy: SearchStrategy
    alternative_strategies: list[SearchStrategy] = field(default_factory=list)
    features: dict = field(default_factory=dict)


@dataclass
class BackendResponse:
    """Outcome of one backend invocation. Failures are values, not raises."""

    success: bool
    results: list[SearchResult] = field(default_factory=list)
    error: str = ""


@dataclass
class StrategyResult:
    """Outcome of one strategy execution."""

    strategy: SearchStrategy
    success: bool
    results: list[SearchResult] = field(default_factory=list)
    score: float = 0.0
    execution_time: float = 0.0  # seconds
    error: str = ""
    metadata: dict = field(default_factory=dict)


class SearchFilters(BaseModel):
    """Post-filters applied to merged results. Unset criteria are no-ops."""

    file_patterns: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    modified_after: datetime | None = None
    modified_before: datetime | None = None
    min_file_size: int | None = None
    max_file_size: int | None = None

    def is_empty(self) -> bool:
        return not (
            self.file_patterns
            or self.languages
            or self.modified_after
            or self.modified_before
            or self.min_file_size is not None
            or self.max_file_size is not None
        )


class SearchOptions(BaseModel):
    """Per-call search options. None means "use the router default"."""

    strategy: SearchStrategy = SearchStrategy.AUTO
    max_results: int | None = None
    timeout: float | None = None
    use_cache: bool | None = None
    min_score: float | None = None
    context_lines: int | None = None
    regex: bool = False
    filters: SearchFilters = Field(default_factory=SearchFilters)


@dataclass
class SearchResponse:
    """What SearchRouter.search() returns. It never raises."""

    results: list[SearchResult]
    strategy: SearchStrategy
    query_analysis: QueryAnalysis
    execution_time: float  # seconds
    from_cache: bool = False
    success: bool = True
    error: str = ""
    strategy_results: list[StrategyResult] = field(default_factory=list)

    @property
    def result_count(self) -> int:
        return len(self.results)
