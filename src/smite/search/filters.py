"""Post-filters for search results: file pattern, language, date, size."""

from __future__ import annotations

import dataclasses
import fnmatch
import os
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from smite.search.models import FileMetadata, SearchFilters, SearchResult

EXTENSION_LANGUAGE_MAP: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".kt": "kotlin",
    ".rb": "ruby",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".sh": "shell",
    ".md": "markdown",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
}


def detect_language(file_path: str) -> str | None:
    """Detect a language from the file extension."""
    return EXTENSION_LANGUAGE_MAP.get(PurePosixPath(file_path).suffix.lower())


def file_metadata(root: Path, file_path: str) -> FileMetadata:
    """Language, size and mtime for a result's file (size/mtime None if missing)."""
    path = Path(file_path)
    if not path.is_absolute():
        path = root / path
    try:
        stat = os.stat(path)
    except OSError:
        return FileMetadata(language=detect_language(file_path))
    return FileMetadata(
        language=detect_language(file_path),
        size=stat.st_size,
        last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
    )


def apply_filters(
    results: list[SearchResult], filters: SearchFilters | None, root: Path
) -> list[SearchResult]:
    """Keep results matching every set criterion; attach file metadata.

    A result whose file cannot be stat'ed fails any date or size criterion.
    """
    if filters is None or filters.is_empty():
        return results

    needs_stat = (
        filters.modified_after is not None
        or filters.modified_before is not None
        or filters.min_file_size is not None
        or filters.max_file_size is not None
    )
    languages = {lang.lower() for lang in filters.languages}

    kept = []
    for result in results:
        if filters.file_patterns and not _matches_any(result.file_path, filters.file_patterns):
            continue

        metadata = result.metadata
        if metadata is None and (needs_stat or languages):
            metadata = file_metadata(root, result.file_path)
            result = dataclasses.replace(result, metadata=metadata)

        if languages and (metadata.language or "") not in languages:
            continue
        if needs_stat and not _within_stat_bounds(metadata, filters):
            continue
        kept.append(result)
    return kept


def _matches_any(file_path: str, patterns: list[str]) -> bool:
    name = PurePosixPath(file_path).name
    return any(
        fnmatch.fnmatch(file_path, p) or fnmatch.fnmatch(name, p) for p in patterns
    )


def _within_stat_bounds(metadata: FileMetadata, filters: SearchFilters) -> bool:
    if filters.min_file_size is not None or filters.max_file_size is not None:
        if metadata.size is None:
            return False
        if filters.min_file_size is not None and metadata.size < filters.min_file_size:
            return False
        if filters.max_file_size is not None and metadata.size > filters.max_file_size:
            return False

    if filters.modified_after is not None or filters.modified_before is not None:
        if metadata.last_modified is None:
            return False
        if filters.modified_after is not None and metadata.last_modified < _aware(filters.modified_after):
            return False
        if filters.modified_before is not None and metadata.last_modified > _aware(filters.modified_before):
            return False
    return True


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
