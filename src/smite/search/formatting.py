"""Plain-text renderings of search results."""

from __future__ import annotations

import json

from smite.search.models import SearchResult

FORMATS = ("json", "table", "diff", "summary")
NO_RESULTS = "No results found."

_RULE = "-" * 120


def format_results(results: list[SearchResult], fmt: str = "json") -> str:
    """Render results as json, table, diff or summary text."""
    if fmt not in FORMATS:
        raise ValueError(f"Unknown output format: {fmt} (expected one of {', '.join(FORMATS)})")
    if fmt == "json":
        return json.dumps([r.to_dict() for r in results], indent=2)
    if not results:
        return NO_RESULTS
    if fmt == "table":
        return _as_table(results)
    if fmt == "diff":
        return _as_diff(results)
    return _as_summary(results)


def _as_table(results: list[SearchResult]) -> str:
    lines = [_RULE, f"{'File':<40} {'Line':<6} {'Score':<7} Content", _RULE]
    for r in results:
        score = f"{r.score * 100:.0f}%"
        lines.append(f"{r.file_path[-40:]:<40} {r.line_number:<6} {score:<7} {r.content.strip()[:60]}")
    lines.append(_RULE)
    lines.append(f"Total: {len(results)} result(s)")
    return "\n".join(lines)


def _as_diff(results: list[SearchResult]) -> str:
    lines = []
    for r in results:
        lines.append(f"--- a/{r.file_path}")
        lines.append(f"+++ b/{r.file_path}")
        lines.append(f"@@ -{r.line_number},0 +{r.line_number},1 @@")
        lines.append(f"+{r.content}")
        lines.append("")
    return "\n".join(lines)


def _as_summary(results: list[SearchResult]) -> str:
    by_file: dict[str, list[int]] = {}
    for r in results:
        by_file.setdefault(r.file_path, []).append(r.line_number)

    lines = [f"Found {len(results)} result(s) in {len(by_file)} file(s):", ""]
    for file_path, line_numbers in by_file.items():
        lines.append(file_path)
        lines.append(f"   Matches: {len(line_numbers)}")
        lines.append(f"   Lines: {', '.join(str(n) for n in line_numbers)}")
        lines.append("")
    return "\n".join(lines)
