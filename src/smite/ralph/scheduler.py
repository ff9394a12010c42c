"""Batch planning over a work-item graph.

Planning is level-order (Kahn-style): every round takes all items whose
dependencies are satisfied by earlier rounds, so each batch is as wide as
the graph allows. Planning is pure and optimistic; the harness reports
real outcomes through ``advance()``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterable

from smite.exceptions import CircularDependencyError
from smite.ralph.graph import WorkItemGraph
from smite.ralph.models import Batch, ExecutionSummary

logger = logging.getLogger("smite.ralph")


class BatchScheduler:
    """Turns a WorkItemGraph into an ordered list of parallel batches.

    Usage:
        scheduler = BatchScheduler(graph)
        for batch in scheduler.generate_batches():
            ...
        next_batch = scheduler.advance(["US-001"])
    """

    def __init__(self, graph: WorkItemGraph, fingerprint: str = "structural") -> None:
        if fingerprint not in ("structural", "counts"):
            raise ValueError(f"Unknown fingerprint mode: {fingerprint}")
        self.graph = graph
        self.fingerprint_mode = fingerprint
        self.cache_hits = 0
        self.cache_misses = 0
        self._cached_batches: list[Batch] | None = None
        self._cached_fingerprint: str | None = None
        self._round = 0

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan(self, completed: Iterable[str] | None = None) -> list[Batch]:
        """Plan batches for every item not already in `completed`.

        Raises:
            CircularDependencyError: if some items can never become ready.
        """
        done = set(completed or ())
        remaining = [item.id for item in self.graph if item.id not in done]
        batches: list[Batch] = []
        number = 1

        while any(item_id not in done for item_id in remaining):
            ready = self.graph.ready_items(done, set())
            if not ready:
                blocked = [item_id for item_id in remaining if item_id not in done]
                cycle = self.graph.find_cycle(blocked)
                logger.warning("No schedulable items left; blocked: %s", ", ".join(blocked))
                raise CircularDependencyError(blocked, cycle)

            batches.append(Batch(number=number, items=tuple(ready)))
            done.update(item.id for item in ready)
            number += 1

        return batches

    def generate_batches(self) -> list[Batch]:
        """Plan the remaining work, memoized on the graph fingerprint."""
        fingerprint = self.fingerprint()
        if self._cached_batches is not None and fingerprint == self._cached_fingerprint:
            self.cache_hits += 1
            return self._cached_batches

        self.cache_misses += 1
        batches = self.plan(self.graph.completed_ids())
        self._cached_batches = batches
        self._cached_fingerprint = fingerprint
        logger.debug(
            "Planned %d item(s) into %d batch(es)",
            sum(len(b) for b in batches), len(batches),
        )
        return batches

    def fingerprint(self) -> str:
        """Cache key for generate_batches()."""
        items = self.graph.items
        if self.fingerprint_mode == "counts":
            completed = sum(1 for item in items if item.passes)
            return f"{len(items)}-{completed}"

        payload = [
            [item.id, list(item.dependencies), item.priority, item.passes]
            for item in items
        ]
        return hashlib.sha256(json.dumps(payload).encode()).hexdigest()

    def invalidate(self) -> None:
        """Drop the memoized plan."""
        self._cached_batches = None
        self._cached_fingerprint = None

    def cache_info(self) -> dict:
        return {
            "hits": self.cache_hits,
            "misses": self.cache_misses,
            "fingerprint": self._cached_fingerprint,
        }

    # ------------------------------------------------------------------
    # Harness protocol
    # ------------------------------------------------------------------

    def next_batch(self) -> Batch | None:
        """The batch runnable right now given committed outcomes.

        Failed items are not retried and keep their dependents blocked.
        Returns None when nothing is runnable.
        """
        completed = self.graph.completed_ids()
        failed = self.graph.failed_ids()
        ready = self.graph.ready_items(completed, failed)
        if not ready:
            return None
        return Batch(number=self._round + 1, items=tuple(ready))

    def advance(
        self, completed_ids: Iterable[str], failed_ids: Iterable[str] = ()
    ) -> Batch | None:
        """Record real outcomes from the harness and return the next batch.

        Every id is checked before any is marked, so an unknown id leaves
        the graph untouched.
        """
        completed_ids = list(completed_ids)
        failed_ids = list(failed_ids)
        for item_id in (*completed_ids, *failed_ids):
            self.graph.get(item_id)
        for item_id in completed_ids:
            self.graph.mark_complete(item_id)
        for item_id in failed_ids:
            self.graph.mark_failed(item_id)
        self._round += 1
        return self.next_batch()

    def blocked_ids(self) -> list[str]:
        """Pending items that cannot run because a dependency failed."""
        completed = self.graph.completed_ids()
        failed = self.graph.failed_ids()
        ready = {item.id for item in self.graph.ready_items(completed, failed)}
        return [item_id for item_id in self.graph.pending_ids() if item_id not in ready]

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def execution_summary(self) -> ExecutionSummary:
        batches = self.generate_batches()
        return ExecutionSummary(
            total_items=len(self.graph),
            max_parallel=max((len(b) for b in batches), default=0),
            batch_count=len(batches),
            critical_path=self.graph.critical_path(),
        )

    def visualize(self) -> str:
        """Plain-text rendering of the dependency graph and plan summary."""
        lines = ["Dependency Graph:", ""]
        for item in self.graph:
            deps = f" <- [{', '.join(item.dependencies)}]" if item.dependencies else ""
            lines.append(f"  {item.id}: {item.title} (priority: {item.priority}){deps}")

        summary = self.execution_summary()
        lines.append("")
        lines.append("Summary:")
        lines.append(f"  Total stories: {summary.total_items}")
        lines.append(f"  Max parallel: {summary.max_parallel}")
        lines.append(f"  Estimated batches: {summary.batch_count}")
        lines.append(f"  Critical path: [{' -> '.join(summary.critical_path)}]")
        return "\n".join(lines)
