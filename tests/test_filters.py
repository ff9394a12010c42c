"""Tests for search post-filters."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

from smite.search.filters import apply_filters, detect_language, file_metadata
from smite.search.models import SearchFilters, SearchResult


def _results(*paths: str) -> list[SearchResult]:
    return [SearchResult(file_path=p, line_number=1, content="x", score=0.5) for p in paths]


class TestDetectLanguage:
    def test_known_extensions(self):
        assert detect_language("src/auth.py") == "python"
        assert detect_language("src/billing.ts") == "typescript"

    def test_unknown_extension(self):
        assert detect_language("README") is None


class TestApplyFilters:
    def test_no_filters_is_identity(self, tmp_source: Path):
        results = _results("auth.py", "billing.ts")
        assert apply_filters(results, SearchFilters(), tmp_source) is results
        assert apply_filters(results, None, tmp_source) is results

    def test_file_patterns_match_path_or_basename(self, tmp_source: Path):
        results = _results("auth.py", "billing.ts", "tests/test_auth.py")
        kept = apply_filters(results, SearchFilters(file_patterns=["test_*.py"]), tmp_source)
        assert [r.file_path for r in kept] == ["tests/test_auth.py"]

        kept = apply_filters(results, SearchFilters(file_patterns=["tests/*", "*.ts"]), tmp_source)
        assert [r.file_path for r in kept] == ["billing.ts", "tests/test_auth.py"]

    def test_languages_attach_metadata(self, tmp_source: Path):
        results = _results("auth.py", "billing.ts")
        kept = apply_filters(results, SearchFilters(languages=["Python"]), tmp_source)
        assert [r.file_path for r in kept] == ["auth.py"]
        assert kept[0].metadata.language == "python"
        assert kept[0].metadata.size > 0

    def test_size_bounds(self, tmp_source: Path):
        size = (tmp_source / "auth.py").stat().st_size
        results = _results("auth.py")
        assert apply_filters(results, SearchFilters(min_file_size=size), tmp_source)
        assert not apply_filters(results, SearchFilters(min_file_size=size + 1), tmp_source)
        assert not apply_filters(results, SearchFilters(max_file_size=size - 1), tmp_source)

    def test_date_range(self, tmp_source: Path):
        stamp = datetime(2024, 1, 15, tzinfo=timezone.utc).timestamp()
        os.utime(tmp_source / "auth.py", (stamp, stamp))
        results = _results("auth.py")

        after = SearchFilters(modified_after=datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert apply_filters(results, after, tmp_source)

        before = SearchFilters(modified_before=datetime(2024, 1, 1))
        assert not apply_filters(results, before, tmp_source)

        window = SearchFilters(
            modified_after=datetime(2024, 1, 15, tzinfo=timezone.utc) - timedelta(days=1),
            modified_before=datetime(2024, 1, 15, tzinfo=timezone.utc) + timedelta(days=1),
        )
        assert apply_filters(results, window, tmp_source)

    def test_missing_file_fails_stat_criteria(self, tmp_source: Path):
        results = _results("gone.py")
        assert not apply_filters(results, SearchFilters(min_file_size=0), tmp_source)
        # language-only filtering does not need the file
        assert apply_filters(results, SearchFilters(languages=["python"]), tmp_source)

    def test_file_metadata_missing(self, tmp_source: Path):
        metadata = file_metadata(tmp_source, "gone.py")
        assert metadata.language == "python"
        assert metadata.size is None
        assert metadata.last_modified is None
