"""Semantic cache: reuse answers for textually similar queries.

Entries are found by keyword similarity, not by exact key. Lookup is
two-tier: first among entries in the same scope (file path or search
domain), then across any entry sharing a keyword with the query. Entries
expire after a TTL and the least recently used entry is evicted when the
cache is full.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from smite.config import CacheConfig
from smite.search.keywords import extract_keywords, keyword_cosine

logger = logging.getLogger("smite.search.cache")


@dataclass
class CacheEntry:
    """A cached payload. Only access bookkeeping changes after creation."""

    id: str
    query: str
    scope_key: str
    content: Any
    cost: int
    created_at: float
    access_count: int = 0
    last_access: float = 0.0
    keywords: frozenset[str] = field(default_factory=frozenset, repr=False)
    _touch: int = field(default=0, repr=False, compare=False)


@dataclass
class CacheStats:
    hits: int
    misses: int
    hit_rate: float
    total_entries: int


class SemanticCache:
    """In-memory cache keyed by (query, scope) similarity.

    Not thread-safe; one instance belongs to one session.

    Usage:
        cache = SemanticCache(max_size=100, ttl=3600)
        cache.set("find the auth function", "src/auth.ts", payload, cost=120)
        entry = cache.get("find auth function", "src/auth.ts")
    """

    def __init__(
        self,
        max_size: int = 100,
        ttl: float = 3600.0,
        similarity_threshold: float = 0.8,
        min_keyword_length: int = 3,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.ttl = ttl
        self.similarity_threshold = similarity_threshold
        self.min_keyword_length = min_keyword_length
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._keyword_index: dict[str, list[str]] = {}
        self._scope_index: dict[str, list[str]] = {}
        self._hits = 0
        self._misses = 0
        self._touch_counter = 0

    @classmethod
    def from_config(cls, config: CacheConfig, **kwargs: Any) -> SemanticCache:
        return cls(
            max_size=config.max_size,
            ttl=config.ttl_seconds,
            similarity_threshold=config.similarity_threshold,
            min_keyword_length=config.min_keyword_length,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, query: str, scope_key: str, cross_scope: bool = True) -> CacheEntry | None:
        """Best entry with similarity >= threshold, or None on a miss.

        With `cross_scope` off, only entries stored under `scope_key` match.
        """
        self._cleanup()
        keywords = self._keywords(query)

        best: CacheEntry | None = None
        best_score = 0.0

        # Tier 1: same scope
        for entry_id in self._scope_index.get(scope_key, []):
            entry = self._entries[entry_id]
            score = keyword_cosine(keywords, entry.keywords)
            if score > best_score:
                best, best_score = entry, score

        # Tier 2: any scope sharing a keyword
        if cross_scope and (best is None or best_score < self.similarity_threshold):
            for entry_id in self._candidates(keywords):
                entry = self._entries[entry_id]
                score = keyword_cosine(keywords, entry.keywords)
                if score > best_score:
                    best, best_score = entry, score

        if best is not None and best_score >= self.similarity_threshold:
            best.access_count += 1
            best.last_access = self._clock()
            best._touch = self._next_touch()
            self._hits += 1
            logger.debug("Cache hit (%.2f) for %r -> %r", best_score, query, best.query)
            return best

        self._misses += 1
        return None

    def set(self, query: str, scope_key: str, content: Any, cost: int = 0) -> CacheEntry:
        """Insert a new entry, evicting the least recently used if full."""
        self._cleanup()
        while len(self._entries) >= self.max_size:
            self._evict_lru()

        now = self._clock()
        entry = CacheEntry(
            id=uuid.uuid4().hex,
            query=query,
            scope_key=scope_key,
            content=content,
            cost=cost,
            created_at=now,
            last_access=now,
            keywords=self._keywords(query),
            _touch=self._next_touch(),
        )
        self._entries[entry.id] = entry
        self._index(entry)
        return entry

    def find_similar(self, query: str, limit: int = 5) -> list[tuple[CacheEntry, float]]:
        """Entries ranked by similarity to `query`, ignoring the threshold."""
        self._cleanup()
        keywords = self._keywords(query)
        scored = []
        for entry_id in self._candidates(keywords):
            entry = self._entries[entry_id]
            score = keyword_cosine(keywords, entry.keywords)
            if score > 0:
                scored.append((entry, score))
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:limit]

    def stats(self) -> CacheStats:
        total = self._hits + self._misses
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            hit_rate=self._hits / total if total else 0.0,
            total_entries=len(self._entries),
        )

    def clear(self) -> None:
        self._entries.clear()
        self._keyword_index.clear()
        self._scope_index.clear()
        self._hits = 0
        self._misses = 0

    def delete(self, entry_id: str) -> bool:
        entry = self._entries.pop(entry_id, None)
        if entry is None:
            return False
        self._unindex(entry)
        return True

    def entries(self) -> list[CacheEntry]:
        return list(self._entries.values())

    def get_entry(self, entry_id: str) -> CacheEntry | None:
        return self._entries.get(entry_id)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _keywords(self, text: str) -> frozenset[str]:
        return extract_keywords(text, self.min_keyword_length)

    def _next_touch(self) -> int:
        self._touch_counter += 1
        return self._touch_counter

    def _candidates(self, keywords: frozenset[str]) -> list[str]:
        seen: dict[str, None] = {}
        for keyword in sorted(keywords):
            for entry_id in self._keyword_index.get(keyword, []):
                seen.setdefault(entry_id, None)
        return list(seen)

    def _index(self, entry: CacheEntry) -> None:
        for keyword in entry.keywords:
            self._keyword_index.setdefault(keyword, []).append(entry.id)
        self._scope_index.setdefault(entry.scope_key, []).append(entry.id)

    def _unindex(self, entry: CacheEntry) -> None:
        for keyword in entry.keywords:
            ids = self._keyword_index.get(keyword)
            if ids and entry.id in ids:
                ids.remove(entry.id)
                if not ids:
                    del self._keyword_index[keyword]
        ids = self._scope_index.get(entry.scope_key)
        if ids and entry.id in ids:
            ids.remove(entry.id)
            if not ids:
                del self._scope_index[entry.scope_key]

    def _cleanup(self) -> None:
        """Drop entries older than the TTL."""
        now = self._clock()
        expired = [e for e in self._entries.values() if now - e.created_at > self.ttl]
        for entry in expired:
            self.delete(entry.id)
        if expired:
            logger.debug("Expired %d cache entr%s", len(expired), "y" if len(expired) == 1 else "ies")

    def _evict_lru(self) -> None:
        lru = min(self._entries.values(), key=lambda e: (e.last_access, e._touch))
        logger.debug("Evicting LRU cache entry %r", lru.query)
        self.delete(lru.id)
