"""Precedence graph over work items."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

import networkx as nx

from smite.exceptions import CircularDependencyError, WorkItemError
from smite.ralph.models import Project, WorkItem

logger = logging.getLogger("smite.ralph")


class WorkItemGraph:
    """Holds work items and their declared dependencies.

    Edges run from a dependency to the item that needs it, so
    ``graph.predecessors(item)`` are the item's known dependencies.
    A dependency id that was never declared is not added as a node;
    it is treated as already satisfied everywhere.

    Usage:
        graph = WorkItemGraph(project.user_stories)
        ready = graph.ready_items(completed=set(), in_progress=set())
    """

    def __init__(self, items: Iterable[WorkItem] = ()) -> None:
        self.graph = nx.DiGraph()
        self._items: dict[str, WorkItem] = {}
        for item in items:
            self.add_item(item)

    @classmethod
    def from_project(cls, project: Project) -> WorkItemGraph:
        return cls(project.user_stories)

    # ------------------------------------------------------------------
    # Item set
    # ------------------------------------------------------------------

    def add_item(self, item: WorkItem) -> None:
        """Add a work item. Ids must be unique."""
        if item.id in self._items:
            raise WorkItemError(f"Duplicate work item id: {item.id}")
        self._items[item.id] = item
        self.graph.add_node(item.id)

        # Wire edges in both directions: this item's dependencies, and any
        # earlier item that referenced this id before it was declared.
        for dep in item.dependencies:
            if dep in self._items:
                self.graph.add_edge(dep, item.id)
        for other in self._items.values():
            if other.id != item.id and item.id in other.dependencies:
                self.graph.add_edge(item.id, other.id)

    def get(self, item_id: str) -> WorkItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise WorkItemError(f"Unknown work item: {item_id}") from None

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[WorkItem]:
        return iter(self._items.values())

    @property
    def items(self) -> list[WorkItem]:
        return list(self._items.values())

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def mark_complete(self, item_id: str) -> None:
        item = self.get(item_id)
        item.passes = True
        item.failed = False
        logger.debug("Work item %s marked complete", item_id)

    def mark_failed(self, item_id: str, notes: str = "") -> None:
        item = self.get(item_id)
        item.passes = False
        item.failed = True
        if notes:
            item.notes = notes
        logger.debug("Work item %s marked failed", item_id)

    def reset(self, item_id: str) -> None:
        item = self.get(item_id)
        item.passes = False
        item.failed = False

    def completed_ids(self) -> set[str]:
        return {i.id for i in self._items.values() if i.passes}

    def failed_ids(self) -> set[str]:
        return {i.id for i in self._items.values() if i.failed}

    def pending_ids(self) -> list[str]:
        return [i.id for i in self._items.values() if not i.passes and not i.failed]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ready_items(self, completed: set[str], in_progress: set[str]) -> list[WorkItem]:
        """Items whose every dependency is completed (or unknown).

        Ordered by priority descending; equal priorities keep declaration
        order.
        """
        ready = []
        for item in self._items.values():
            if item.id in completed or item.id in in_progress:
                continue
            if all(dep in completed or dep not in self._items for dep in item.dependencies):
                ready.append(item)
        # sorted() is stable, so ties stay in declaration order
        return sorted(ready, key=lambda i: -i.priority)

    def depths(self) -> dict[str, int]:
        """Length of the longest dependency chain ending at each item."""
        if not self.is_acyclic():
            cycle = self.find_cycle()
            raise CircularDependencyError(sorted(set(cycle)), cycle)

        depth: dict[str, int] = {}
        for node in nx.topological_sort(self.graph):
            deps = [d for d in self._items[node].dependencies if d in self._items]
            depth[node] = 1 + max((depth[d] for d in deps), default=0)
        return {item_id: depth[item_id] for item_id in self._items}

    def critical_path(self) -> list[str]:
        """The longest dependency chain, deepest item first.

        Ties go to the first-declared item, and at each step to the
        first-declared dependency with maximum depth.
        """
        if not self._items:
            return []
        depths = self.depths()

        current = max(self._items, key=lambda item_id: depths[item_id])
        path = [current]
        while True:
            deps = [d for d in self._items[current].dependencies if d in self._items]
            if not deps:
                break
            current = max(deps, key=lambda d: depths[d])
            path.append(current)
        return path

    def unknown_dependencies(self) -> dict[str, list[str]]:
        """Map of item id -> dependency ids that were never declared."""
        missing: dict[str, list[str]] = {}
        for item in self._items.values():
            unknown = [d for d in item.dependencies if d not in self._items]
            if unknown:
                missing[item.id] = unknown
        return missing

    def is_acyclic(self) -> bool:
        return nx.is_directed_acyclic_graph(self.graph)

    def find_cycle(self, among: Iterable[str] | None = None) -> list[str]:
        """Return the ids of one dependency cycle, or [] if there is none."""
        graph = self.graph if among is None else self.graph.subgraph(among)
        try:
            edges = nx.find_cycle(graph)
        except nx.NetworkXNoCycle:
            return []
        return [u for u, _ in edges]
