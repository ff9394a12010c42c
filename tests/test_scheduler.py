"""Tests for batch planning and the harness protocol."""

from __future__ import annotations

import pytest

from smite.exceptions import CircularDependencyError, WorkItemError
from smite.ralph.graph import WorkItemGraph
from smite.ralph.scheduler import BatchScheduler


@pytest.fixture
def fan_out(make_item) -> WorkItemGraph:
    return WorkItemGraph([
        make_item("US-001"),
        make_item("US-002", ["US-001"]),
        make_item("US-003", ["US-001"]),
        make_item("US-004", ["US-003"]),
    ])


def _assert_valid_plan(graph: WorkItemGraph, batches) -> None:
    """Every item appears once, after all of its known dependencies."""
    position = {}
    for batch in batches:
        for item in batch.items:
            assert item.id not in position
            position[item.id] = batch.number
    for item in graph:
        for dep in item.dependencies:
            if dep in graph:
                assert position[dep] < position[item.id]


class TestPlanning:
    def test_level_order_batches(self, fan_out):
        batches = BatchScheduler(fan_out).generate_batches()
        assert [b.ids for b in batches] == [["US-001"], ["US-002", "US-003"], ["US-004"]]
        assert [b.number for b in batches] == [1, 2, 3]
        assert batches[1].parallel
        assert not batches[0].parallel

    def test_plan_is_valid_for_wide_graph(self, make_item):
        graph = WorkItemGraph([
            make_item("a"), make_item("b"), make_item("c", ["a", "b"]),
            make_item("d", ["c"]), make_item("e", ["a"]), make_item("f", ["d", "e"]),
        ])
        batches = BatchScheduler(graph).plan()
        _assert_valid_plan(graph, batches)
        assert sum(len(b) for b in batches) == len(graph)

    def test_priority_orders_within_batch(self, make_item):
        graph = WorkItemGraph([make_item("A", priority=2), make_item("B", priority=8)])
        batches = BatchScheduler(graph).plan()
        assert batches[0].ids == ["B", "A"]

    def test_completed_items_are_skipped(self, fan_out):
        fan_out.mark_complete("US-001")
        batches = BatchScheduler(fan_out).generate_batches()
        assert [b.ids for b in batches] == [["US-002", "US-003"], ["US-004"]]

    def test_plan_is_pure(self, fan_out):
        scheduler = BatchScheduler(fan_out)
        scheduler.plan({"US-001", "US-003"})
        assert fan_out.completed_ids() == set()

    def test_empty_graph(self):
        assert BatchScheduler(WorkItemGraph()).generate_batches() == []

    def test_circular_dependency(self, make_item):
        graph = WorkItemGraph([make_item("A", ["B"]), make_item("B", ["A"])])
        with pytest.raises(CircularDependencyError) as exc:
            BatchScheduler(graph).generate_batches()
        assert set(exc.value.blocked) == {"A", "B"}
        assert set(exc.value.cycle) == {"A", "B"}
        assert "circular dependency" in str(exc.value)

    def test_cycle_behind_a_valid_prefix(self, make_item):
        graph = WorkItemGraph([
            make_item("root"),
            make_item("x", ["root", "y"]),
            make_item("y", ["x"]),
        ])
        with pytest.raises(CircularDependencyError) as exc:
            BatchScheduler(graph).plan()
        assert exc.value.blocked == ["x", "y"]

    def test_unknown_fingerprint_mode(self, fan_out):
        with pytest.raises(ValueError):
            BatchScheduler(fan_out, fingerprint="md5")


class TestMemoization:
    def test_repeat_call_returns_cached_plan(self, fan_out):
        scheduler = BatchScheduler(fan_out)
        first = scheduler.generate_batches()
        second = scheduler.generate_batches()
        assert first is second
        assert scheduler.cache_info()["hits"] == 1
        assert scheduler.cache_info()["misses"] == 1

    def test_completion_invalidates(self, fan_out):
        scheduler = BatchScheduler(fan_out)
        first = scheduler.generate_batches()
        fan_out.mark_complete("US-001")
        second = scheduler.generate_batches()
        assert first is not second
        assert scheduler.cache_misses == 2

    def test_structural_fingerprint_sees_priority_change(self, make_item):
        graph = WorkItemGraph([make_item("A", priority=1), make_item("B", priority=2)])
        scheduler = BatchScheduler(graph)
        assert scheduler.generate_batches()[0].ids == ["B", "A"]

        graph.get("A").priority = 9
        assert scheduler.generate_batches()[0].ids == ["A", "B"]

    def test_counts_fingerprint_is_coarse(self, make_item):
        graph = WorkItemGraph([make_item("A", priority=1), make_item("B", priority=2)])
        scheduler = BatchScheduler(graph, fingerprint="counts")
        assert scheduler.fingerprint() == "2-0"
        first = scheduler.generate_batches()

        graph.get("A").priority = 9
        assert scheduler.generate_batches() is first

        scheduler.invalidate()
        assert scheduler.generate_batches()[0].ids == ["A", "B"]

    def test_counts_fingerprint_tracks_completion(self, fan_out):
        scheduler = BatchScheduler(fan_out, fingerprint="counts")
        fan_out.mark_complete("US-001")
        assert scheduler.fingerprint() == "4-1"


class TestHarnessProtocol:
    def test_next_batch_and_advance(self, fan_out):
        scheduler = BatchScheduler(fan_out)
        batch = scheduler.next_batch()
        assert batch.number == 1
        assert batch.ids == ["US-001"]

        batch = scheduler.advance(["US-001"])
        assert batch.number == 2
        assert batch.ids == ["US-002", "US-003"]

        batch = scheduler.advance(["US-002", "US-003"])
        assert batch.ids == ["US-004"]

        assert scheduler.advance(["US-004"]) is None
        assert fan_out.pending_ids() == []

    def test_partial_completion(self, fan_out):
        scheduler = BatchScheduler(fan_out)
        scheduler.advance(["US-001"])
        batch = scheduler.advance(["US-003"])
        # US-002 is still outstanding, US-004 became ready
        assert batch.ids == ["US-002", "US-004"]

    def test_failure_blocks_dependents(self, fan_out):
        scheduler = BatchScheduler(fan_out)
        scheduler.advance(["US-001"])
        batch = scheduler.advance(["US-002"], failed_ids=["US-003"])

        assert batch is None
        assert fan_out.failed_ids() == {"US-003"}
        assert scheduler.blocked_ids() == ["US-004"]

    def test_unknown_id_leaves_state_untouched(self, fan_out):
        scheduler = BatchScheduler(fan_out)
        with pytest.raises(WorkItemError):
            scheduler.advance(["US-001"], failed_ids=["BOGUS"])

        assert fan_out.completed_ids() == set()
        assert fan_out.failed_ids() == set()
        batch = scheduler.next_batch()
        assert batch.number == 1
        assert batch.ids == ["US-001"]


class TestReporting:
    def test_execution_summary(self, fan_out):
        summary = BatchScheduler(fan_out).execution_summary()
        assert summary.total_items == 4
        assert summary.batch_count == 3
        assert summary.max_parallel == 2
        assert summary.critical_path == ["US-004", "US-003", "US-001"]

    def test_visualize(self, fan_out):
        text = BatchScheduler(fan_out).visualize()
        assert text.startswith("Dependency Graph:")
        assert "US-002: Story US-002 (priority: 5) <- [US-001]" in text
        assert "Estimated batches: 3" in text
        assert "Critical path: [US-004 -> US-003 -> US-001]" in text
