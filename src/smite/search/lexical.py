"""Literal (in-process) code search with ranking."""

from __future__ import annotations

import fnmatch
import os
import re
from pathlib import Path

from smite.config import IndexerConfig
from smite.search.models import SearchResult

# Highest raw score _score_match() can produce; used to normalize into [0, 1]
_MAX_RAW_SCORE = 2.8

_DEFINITION_PREFIXES = (
    "def ", "class ", "function ", "const ",
    "let ", "var ", "fn ", "func ", "pub ",
    "export ", "interface ", "type ",
)


class LexicalSearch:
    """Substring/regex search over the files under a root directory.

    Walks the tree honoring exclusion patterns and .gitignore, matches
    line by line, and returns ranked results with context lines.
    """

    def __init__(self, root: Path, config: IndexerConfig | None = None) -> None:
        self.root = Path(root).resolve()
        self.config = config or IndexerConfig()

    def search(
        self,
        query: str,
        file_pattern: str = "",
        max_results: int = 20,
        context_lines: int = 2,
        regex: bool = False,
    ) -> list[SearchResult]:
        """Search for lines matching the query.

        Args:
            query: Search text (or regex pattern when `regex` is set).
            file_pattern: Glob pattern to filter files (e.g., "*.py").
            max_results: Maximum results to return.
            context_lines: Number of context lines before/after match.
            regex: If True, treat query as a regex pattern.

        Returns:
            Ranked list of search results. An invalid regex yields [].
        """
        if not query:
            return []
        if regex:
            try:
                pattern = re.compile(query, re.IGNORECASE)
            except re.error:
                return []
        else:
            pattern = re.compile(re.escape(query), re.IGNORECASE)

        results: list[SearchResult] = []
        for rel_path in self.collect_files(file_pattern):
            full_path = self.root / rel_path
            try:
                text = full_path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue
            if "\x00" in text[:1024]:
                continue  # binary

            lines = text.splitlines()
            for i, line in enumerate(lines):
                if not pattern.search(line):
                    continue
                start = max(0, i - context_lines)
                end = min(len(lines), i + context_lines + 1)
                results.append(SearchResult(
                    file_path=rel_path,
                    line_number=i + 1,
                    content=line,
                    score=self._score_match(query, line, rel_path),
                    context_before=tuple(lines[start:i]),
                    context_after=tuple(lines[i + 1 : end]),
                ))

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:max_results]

    def collect_files(self, file_pattern: str = "") -> list[str]:
        """Relative paths of searchable files, sorted."""
        files = []
        max_size = self.config.max_file_size_kb * 1024
        exclude = self.config.exclude_patterns + _read_gitignore(self.root)

        for dirpath, dirnames, filenames in os.walk(self.root):
            rel_dir = os.path.relpath(dirpath, self.root)
            dirnames[:] = [
                d for d in dirnames
                if not _should_exclude(os.path.join(rel_dir, d) if rel_dir != "." else d, exclude)
            ]
            for filename in filenames:
                rel_path = os.path.join(rel_dir, filename) if rel_dir != "." else filename
                rel_path = rel_path.replace(os.sep, "/")
                if _should_exclude(rel_path, exclude):
                    continue
                if file_pattern and not (
                    fnmatch.fnmatch(rel_path, file_pattern)
                    or fnmatch.fnmatch(filename, file_pattern)
                ):
                    continue
                try:
                    if (Path(dirpath) / filename).stat().st_size > max_size:
                        continue
                except OSError:
                    continue
                files.append(rel_path)
        return sorted(files)

    def _score_match(self, query: str, line: str, file_path: str) -> float:
        """Score a match based on quality heuristics, normalized to [0, 1]."""
        score = 1.0

        # Exact case match bonus
        if query in line:
            score += 0.5

        stripped = line.strip()
        if stripped.startswith(_DEFINITION_PREFIXES):
            score += 1.0

        # Shorter lines are usually more relevant
        if len(stripped) < 80:
            score += 0.3

        if "test" in file_path.lower():
            score -= 0.3

        return round(max(0.0, min(1.0, score / _MAX_RAW_SCORE)), 4)


def _should_exclude(path: str, patterns: list[str]) -> bool:
    """Check if a path matches any exclusion pattern."""
    path_parts = Path(path).parts
    for pattern in patterns:
        if fnmatch.fnmatch(path, pattern):
            return True
        for part in path_parts:
            if fnmatch.fnmatch(part, pattern):
                return True
    return False


def _read_gitignore(root: Path) -> list[str]:
    """Read .gitignore patterns from the search root."""
    gitignore = root / ".gitignore"
    if not gitignore.exists():
        return []

    patterns = []
    try:
        for line in gitignore.read_text().splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                patterns.append(line.rstrip("/"))
    except OSError:
        pass
    return patterns
