"""Load, validate and save work-item documents (PRD files)."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path

from pydantic import ValidationError

from smite.config import PRD_FILE, get_smite_dir
from smite.exceptions import WorkItemError
from smite.ralph.models import Project, WorkItem

MIN_PRIORITY = 1
MAX_PRIORITY = 10


def parse_project(text: str, strict: bool = True) -> Project:
    """Parse a work-item document from a JSON string.

    With `strict`, any problem reported by validate_project() raises.
    """
    try:
        project = Project.model_validate(json.loads(text))
    except (json.JSONDecodeError, ValidationError) as e:
        raise WorkItemError(f"Failed to parse PRD: {e}") from e

    if strict:
        problems = validate_project(project)
        if problems:
            raise WorkItemError("Invalid PRD:\n  " + "\n  ".join(problems))
    return project


def load_project(path: str | Path, strict: bool = True) -> Project:
    """Load a work-item document from disk."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise WorkItemError(f"Cannot read PRD at {path}: {e}") from e
    return parse_project(text, strict=strict)


def save_project(project: Project, path: str | Path) -> None:
    """Write the document back, keeping the original camelCase keys."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(project.model_dump(by_alias=True), indent=2))


def default_prd_path(root: Path, filename: str = PRD_FILE) -> Path:
    return get_smite_dir(root) / filename


def validate_project(project: Project) -> list[str]:
    """Return a list of human-readable problems; empty means valid."""
    problems: list[str] = []
    if not project.project:
        problems.append("PRD must have a project name")
    if not project.branch_name:
        problems.append("PRD must have a branch name")
    if not project.description:
        problems.append("PRD must have a description")
    if not project.user_stories:
        problems.append("PRD must have at least one user story")
        return problems

    for index, story in enumerate(project.user_stories):
        problems.extend(_validate_item(story, index))

    counts = Counter(s.id for s in project.user_stories)
    for item_id, count in counts.items():
        if item_id and count > 1:
            problems.append(f"Story id {item_id} is declared {count} times")

    known = set(counts)
    for story in project.user_stories:
        for dep in story.dependencies:
            if dep not in known:
                problems.append(f"Story {story.id} depends on non-existent story {dep}")
    return problems


def _validate_item(story: WorkItem, index: int) -> list[str]:
    if not story.id:
        return [f"Story at index {index} missing id"]

    problems = []
    if not story.title:
        problems.append(f"Story {story.id} missing title")
    if not story.description:
        problems.append(f"Story {story.id} missing description")
    if not story.acceptance_criteria:
        problems.append(f"Story {story.id} must have at least one acceptance criterion")
    if not MIN_PRIORITY <= story.priority <= MAX_PRIORITY:
        problems.append(
            f"Story {story.id} must have priority between {MIN_PRIORITY}-{MAX_PRIORITY}"
        )
    if not story.agent:
        problems.append(f"Story {story.id} must specify an agent")
    return problems


def render_prompt(item: WorkItem) -> str:
    """Build the agent prompt for one work item."""
    parts = [
        f"Story ID: {item.id}",
        f"Title: {item.title}",
        f"Description: {item.description}",
        "",
        "Acceptance Criteria:",
        *(f"  {i}. {c}" for i, c in enumerate(item.acceptance_criteria, 1)),
        "",
        f"Dependencies: {', '.join(item.dependencies)}"
        if item.dependencies
        else "No dependencies - can start immediately",
    ]
    return "\n".join(parts)
