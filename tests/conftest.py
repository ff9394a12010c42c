"""Shared test fixtures for smite."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from smite.ralph.models import WorkItem


def _story(story_id: str, deps: list[str] | None = None, priority: int = 5) -> dict:
    return {
        "id": story_id,
        "title": f"Story {story_id}",
        "description": f"Implement {story_id}",
        "acceptanceCriteria": [f"{story_id} works"],
        "priority": priority,
        "agent": "general",
        "dependencies": deps or [],
        "passes": False,
        "notes": "",
    }


@pytest.fixture
def prd_data() -> dict:
    """A valid work-item document: one root, a fan-out, and a chain."""
    return {
        "project": "checkout",
        "branchName": "feature/checkout",
        "description": "Checkout flow rework",
        "userStories": [
            _story("US-001"),
            _story("US-002", ["US-001"]),
            _story("US-003", ["US-001"]),
            _story("US-004", ["US-003"]),
        ],
    }


@pytest.fixture
def make_item():
    """Factory for WorkItem instances with sensible defaults."""

    def _make(item_id: str, deps: list[str] | None = None, priority: int = 5, **kwargs) -> WorkItem:
        return WorkItem(
            id=item_id,
            title=kwargs.pop("title", f"Story {item_id}"),
            description=kwargs.pop("description", f"Implement {item_id}"),
            acceptance_criteria=kwargs.pop("acceptance_criteria", [f"{item_id} works"]),
            priority=priority,
            agent=kwargs.pop("agent", "general"),
            dependencies=deps or [],
            **kwargs,
        )

    return _make


@pytest.fixture
def smite_project(tmp_path: Path, prd_data: dict) -> Path:
    """A project root with .smite/prd.json in place."""
    smite_dir = tmp_path / ".smite"
    smite_dir.mkdir()
    (smite_dir / "prd.json").write_text(json.dumps(prd_data, indent=2))
    return tmp_path


@pytest.fixture
def tmp_source(tmp_path: Path) -> Path:
    """A small source tree for the literal matcher."""
    (tmp_path / "auth.py").write_text('''"""Authentication helpers."""


def refresh_session(token):
    """Refresh an expired session token."""
    if not token:
        raise ValueError("missing token")
    return token + "-refreshed"


class SessionStore:
    def __init__(self):
        self.sessions = {}
''')

    (tmp_path / "billing.ts").write_text('''export function calculateTotal(items: number[]): number {
  return items.reduce((a, b) => a + b, 0);
}

// refresh_session is not used here
''')

    tests = tmp_path / "tests"
    tests.mkdir()
    (tests / "test_auth.py").write_text('''from auth import refresh_session


def test_refresh_session():
    assert refresh_session("abc") == "abc-refreshed"
''')

    ignored = tmp_path / "node_modules" / "lib"
    ignored.mkdir(parents=True)
    (ignored / "index.js").write_text("function refresh_session() {}\n")

    (tmp_path / "blob.bin").write_bytes(b"refresh_session\x00\x01\x02")
    return tmp_path
