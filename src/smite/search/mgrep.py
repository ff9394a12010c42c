"""Client for the external mgrep semantic search binary.

The query is always passed as a single argv element to a direct exec,
never through a shell, so shell metacharacters in queries are inert.
"""

from __future__ import annotations

import json
import logging
import math
import subprocess
from pathlib import Path
from typing import Any

from smite.exceptions import BackendTimeoutError, BackendUnavailableError
from smite.search.models import BackendResponse, SearchResult

logger = logging.getLogger("smite.search.mgrep")

BACKEND_NAME = "mgrep"


class MgrepClient:
    """Runs `mgrep search <query>` and parses its JSON output.

    Every failure mode comes back as a BackendResponse with
    success=False; nothing is raised to the caller.
    """

    def __init__(
        self,
        executable: str = "mgrep",
        timeout: float = 30.0,
        cwd: str | Path | None = None,
    ) -> None:
        self.executable = executable
        self.timeout = timeout
        self.cwd = str(cwd) if cwd is not None else None

    def build_argv(self, query: str, path: str | None = None) -> list[str]:
        argv = [self.executable, "search", query]
        if path:
            argv.append(path)
        return argv

    def search(
        self,
        query: str,
        path: str | None = None,
        max_results: int | None = None,
        timeout: float | None = None,
    ) -> BackendResponse:
        """Run a semantic search. Never raises."""
        argv = self.build_argv(query, path)
        try:
            stdout = self._run(argv, timeout if timeout is not None else self.timeout)
        except BackendUnavailableError as e:
            logger.warning("%s", e)
            return BackendResponse(success=False, error=str(e))
        except BackendTimeoutError as e:
            logger.warning("%s for query %r", e, query)
            return BackendResponse(success=False, error=str(e))
        except subprocess.CalledProcessError as e:
            message = _first_line(e.stderr) or f"exit code {e.returncode}"
            logger.warning("mgrep failed: %s", message)
            return BackendResponse(success=False, error=f"{BACKEND_NAME} failed: {message}")

        results = map_mgrep_results(_parse_output(stdout))
        if max_results is not None:
            results = results[:max_results]
        return BackendResponse(success=True, results=results)

    def is_available(self) -> bool:
        """True if `mgrep --version` runs and exits cleanly."""
        try:
            self._run([self.executable, "--version"], min(self.timeout, 10.0))
        except (BackendUnavailableError, BackendTimeoutError, subprocess.CalledProcessError):
            return False
        return True

    def _run(self, argv: list[str], timeout: float) -> str:
        """Spawn argv without a shell and return stdout.

        Raises:
            BackendUnavailableError: the executable cannot be started.
            BackendTimeoutError: the process outlived `timeout` and was killed.
            subprocess.CalledProcessError: non-zero exit.
        """
        try:
            proc = subprocess.Popen(
                argv,
                shell=False,
                cwd=self.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise BackendUnavailableError(BACKEND_NAME) from e

        try:
            raw_out, raw_err = proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            proc.kill()
            proc.communicate()
            raise BackendTimeoutError(BACKEND_NAME, timeout) from e

        stdout, stderr = _decode(raw_out), _decode(raw_err)
        if proc.returncode != 0:
            raise subprocess.CalledProcessError(proc.returncode, argv, stdout, stderr)
        return stdout


def _decode(data: bytes | None) -> str:
    # invalid UTF-8 is replaced, never raised
    return (data or b"").decode("utf-8", errors="replace")


def _parse_output(stdout: str) -> list[Any]:
    """Decode mgrep's JSON array; anything else counts as zero results."""
    if not stdout.strip():
        return []
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError:
        logger.warning("Discarding malformed mgrep output (%d bytes)", len(stdout))
        return []
    if isinstance(data, dict):
        data = data.get("results", [])
    if not isinstance(data, list):
        logger.warning("Unexpected mgrep output type: %s", type(data).__name__)
        return []
    return data


def map_mgrep_result(raw: dict) -> SearchResult:
    """Map one mgrep record onto SearchResult, with documented fallbacks."""
    line = raw.get("startLine")
    snippet = raw.get("snippet")
    try:
        score = float(raw.get("score") or 0.0)
    except (TypeError, ValueError):
        score = 0.0
    if not math.isfinite(score):
        score = 0.0
    return SearchResult(
        file_path=str(raw.get("file", "")),
        line_number=line if isinstance(line, int) and not isinstance(line, bool) and line > 0 else 0,
        content=snippet if isinstance(snippet, str) else "",
        score=max(0.0, min(1.0, score)),
    )


def map_mgrep_results(records: list[Any]) -> list[SearchResult]:
    """Map records in order, skipping entries without a file."""
    return [
        map_mgrep_result(r)
        for r in records
        if isinstance(r, dict) and r.get("file")
    ]


def _first_line(text: str | None) -> str:
    for line in (text or "").splitlines():
        if line.strip():
            return line.strip()
    return ""
