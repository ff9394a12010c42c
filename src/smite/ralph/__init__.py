"""Ralph: dependency-aware batch planning for work items."""

from smite.ralph.graph import WorkItemGraph
from smite.ralph.loader import load_project, parse_project, save_project, validate_project
from smite.ralph.models import Batch, ExecutionSummary, Project, WorkItem
from smite.ralph.scheduler import BatchScheduler

__all__ = [
    "WorkItem",
    "Project",
    "Batch",
    "ExecutionSummary",
    "WorkItemGraph",
    "BatchScheduler",
    "load_project",
    "parse_project",
    "save_project",
    "validate_project",
]
