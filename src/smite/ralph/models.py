"""Data models for work items and execution batches."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field


class WorkItem(BaseModel):
    """A discrete, independently schedulable unit of work (a user story)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = ""
    description: str = ""
    acceptance_criteria: list[str] = Field(default_factory=list, alias="acceptanceCriteria")
    priority: int = 0
    agent: str = ""
    dependencies: list[str] = Field(default_factory=list)
    passes: bool = False  # completion flag, flipped by the harness
    failed: bool = Field(default=False, exclude=True)
    notes: str = ""


class Project(BaseModel):
    """The work-item document (PRD) consumed by the scheduler."""

    model_config = ConfigDict(populate_by_name=True)

    project: str = ""
    branch_name: str = Field(default="", alias="branchName")
    description: str = ""
    user_stories: list[WorkItem] = Field(default_factory=list, alias="userStories")


@dataclass(frozen=True)
class Batch:
    """A set of work items whose dependencies are all satisfied together."""

    number: int
    items: tuple[WorkItem, ...]

    @property
    def parallel(self) -> bool:
        return len(self.items) > 1

    @property
    def ids(self) -> list[str]:
        return [item.id for item in self.items]

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class ExecutionSummary:
    """Shape of a computed execution plan."""

    total_items: int
    max_parallel: int
    batch_count: int
    critical_path: list[str] = field(default_factory=list)
