from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional


class ProjectStatus(Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"

    @classmethod
    def from_string(cls, value: str) -> "ProjectStatus":
        token = (value or "").strip().lower()
        for status in cls:
            if status.value == token:
                return status
        raise ValueError(f"Invalid project status: {value!r}")


@dataclass(frozen=True)
class Project:
    id: int
    title: str
    status: ProjectStatus = ProjectStatus.ACTIVE
    color: str = ""

    @property
    def archived(self) -> bool:
        return self.status is ProjectStatus.ARCHIVED


def normalize_tag(name: str) -> str:
    return (name or "").strip().lower()


@dataclass(frozen=True)
class Task:
    """Read-only task snapshot as handed over by the storage layer.

    ``parent_id`` and ``project_id`` are weak references (plain ids); the tree
    never holds object pointers between tasks.
    """

    id: int
    title: str
    sort_key: str = ""
    parent_id: Optional[int] = None
    project_id: Optional[int] = None
    sequential_limit: int = 0
    body: Optional[str] = None
    completed_at: Optional[datetime] = None
    reviewed_at: Optional[date] = None
    start_at: Optional[datetime] = None
    due_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    someday: bool = False
    tags: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.sequential_limit < 0:
            raise ValueError(f"sequential_limit must be non-negative, got {self.sequential_limit}")
        object.__setattr__(self, "tags", frozenset(normalize_tag(t) for t in self.tags if normalize_tag(t)))

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class TaskTree:
    """Arena of tasks indexed by id plus the projects they reference."""

    def __init__(self, tasks: Iterable[Task] = (), projects: Iterable[Project] = ()):
        self._tasks: Dict[int, Task] = {}
        for task in tasks:
            if task.id in self._tasks:
                raise ValueError(f"Duplicate task id: {task.id}")
            self._tasks[task.id] = task
        self._projects: Dict[int, Project] = {p.id: p for p in projects}
        self._by_parent: Dict[Optional[int], List[Task]] = {}
        for task in self._tasks.values():
            self._by_parent.setdefault(task.parent_id, []).append(task)
        for group in self._by_parent.values():
            group.sort(key=lambda t: (t.sort_key, t.id))

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    @property
    def projects(self) -> List[Project]:
        return list(self._projects.values())

    def get(self, task_id: Optional[int]) -> Optional[Task]:
        if task_id is None:
            return None
        return self._tasks.get(task_id)

    def project(self, project_id: Optional[int]) -> Optional[Project]:
        if project_id is None:
            return None
        return self._projects.get(project_id)

    def project_title(self, task: Task) -> Optional[str]:
        project = self.project(task.project_id)
        return project.title if project else None

    def parent(self, task: Task) -> Optional[Task]:
        return self.get(task.parent_id)

    def children(self, parent_id: Optional[int], project_id: Optional[int] = None, *, any_project: bool = True) -> List[Task]:
        """Direct children of ``parent_id`` ordered by sort key.

        Root tasks (``parent_id=None``) are scoped by project unless
        ``any_project`` is set.
        """
        group = self._by_parent.get(parent_id, [])
        if any_project:
            return list(group)
        return [t for t in group if t.project_id == project_id]

    def siblings(self, task_id: int) -> List[Task]:
        """Tasks sharing the (parent, project-or-none) ordering scope of ``task_id``, itself included."""
        task = self._tasks[task_id]
        return self.scope(task.parent_id, task.project_id)

    def scope(self, parent_id: Optional[int], project_id: Optional[int]) -> List[Task]:
        if parent_id is not None:
            return self.children(parent_id)
        return self.children(None, project_id, any_project=False)

    def replace(self, task: Task) -> "TaskTree":
        tasks = dict(self._tasks)
        tasks[task.id] = task
        return TaskTree(tasks.values(), self._projects.values())


__all__ = ["ProjectStatus", "Project", "Task", "TaskTree", "normalize_tag"]
