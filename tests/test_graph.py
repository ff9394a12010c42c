"""Tests for the work-item graph."""

from __future__ import annotations

import pytest

from smite.exceptions import CircularDependencyError, WorkItemError
from smite.ralph.graph import WorkItemGraph


class TestWorkItemGraph:
    def test_edges_follow_dependencies(self, make_item):
        graph = WorkItemGraph([make_item("A"), make_item("B", ["A"])])
        assert graph.graph.has_edge("A", "B")
        assert len(graph) == 2
        assert "A" in graph and "Z" not in graph

    def test_forward_reference_is_wired(self, make_item):
        graph = WorkItemGraph([make_item("B", ["A"]), make_item("A")])
        assert graph.graph.has_edge("A", "B")

    def test_duplicate_id_rejected(self, make_item):
        with pytest.raises(WorkItemError):
            WorkItemGraph([make_item("A"), make_item("A")])

    def test_get_unknown(self, make_item):
        graph = WorkItemGraph([make_item("A")])
        with pytest.raises(WorkItemError):
            graph.get("nope")


class TestReadyItems:
    def test_roots_are_ready(self, make_item):
        graph = WorkItemGraph([make_item("A"), make_item("B", ["A"]), make_item("C")])
        ready = graph.ready_items(set(), set())
        assert [i.id for i in ready] == ["A", "C"]

    def test_priority_descending_then_declaration_order(self, make_item):
        graph = WorkItemGraph([
            make_item("low", priority=1),
            make_item("high", priority=9),
            make_item("mid-1", priority=5),
            make_item("mid-2", priority=5),
        ])
        ready = graph.ready_items(set(), set())
        assert [i.id for i in ready] == ["high", "mid-1", "mid-2", "low"]

    def test_completed_and_in_progress_excluded(self, make_item):
        graph = WorkItemGraph([make_item("A"), make_item("B", ["A"]), make_item("C")])
        ready = graph.ready_items({"A"}, {"C"})
        assert [i.id for i in ready] == ["B"]

    def test_unknown_dependency_counts_as_satisfied(self, make_item):
        graph = WorkItemGraph([make_item("A", ["EXTERNAL-1"])])
        assert [i.id for i in graph.ready_items(set(), set())] == ["A"]
        assert graph.unknown_dependencies() == {"A": ["EXTERNAL-1"]}


class TestStatus:
    def test_mark_complete_and_failed(self, make_item):
        graph = WorkItemGraph([make_item("A"), make_item("B"), make_item("C")])
        graph.mark_complete("A")
        graph.mark_failed("B", notes="tests red")

        assert graph.completed_ids() == {"A"}
        assert graph.failed_ids() == {"B"}
        assert graph.pending_ids() == ["C"]
        assert graph.get("B").notes == "tests red"

        graph.reset("B")
        assert graph.failed_ids() == set()
        assert graph.pending_ids() == ["B", "C"]


class TestCriticalPath:
    def test_longest_chain(self, make_item):
        graph = WorkItemGraph([
            make_item("US-001"),
            make_item("US-002", ["US-001"]),
            make_item("US-003", ["US-001"]),
            make_item("US-004", ["US-003"]),
        ])
        assert graph.critical_path() == ["US-004", "US-003", "US-001"]

    def test_depths(self, make_item):
        graph = WorkItemGraph([make_item("A"), make_item("B", ["A"]), make_item("C", ["A", "B"])])
        assert graph.depths() == {"A": 1, "B": 2, "C": 3}

    def test_dependency_tie_goes_to_first_declared(self, make_item):
        graph = WorkItemGraph([make_item("X"), make_item("Y"), make_item("Z", ["Y", "X"])])
        assert graph.critical_path() == ["Z", "Y"]

    def test_deepest_item_tie_goes_to_first_declared(self, make_item):
        graph = WorkItemGraph([
            make_item("A"),
            make_item("B", ["A"]),
            make_item("C"),
            make_item("D", ["C"]),
        ])
        assert graph.critical_path() == ["B", "A"]

    def test_empty(self):
        assert WorkItemGraph().critical_path() == []

    def test_cycle_raises(self, make_item):
        graph = WorkItemGraph([make_item("A", ["B"]), make_item("B", ["A"])])
        assert not graph.is_acyclic()
        with pytest.raises(CircularDependencyError):
            graph.critical_path()

    def test_find_cycle(self, make_item):
        graph = WorkItemGraph([make_item("A", ["B"]), make_item("B", ["A"]), make_item("C")])
        assert set(graph.find_cycle()) == {"A", "B"}
        assert graph.find_cycle(["C"]) == []

    def test_self_dependency_is_a_cycle(self, make_item):
        graph = WorkItemGraph([make_item("A", ["A"])])
        assert graph.find_cycle() == ["A"]
