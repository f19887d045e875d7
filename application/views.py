"""List-view intake: which tasks a list shows, in display order.

View toggles are pure filters over the computed tree; they never change
stored data.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Set

from core import Task, TaskTree, compute_actionability, flatten_tree, recently_reviewed, review_due
from core.review import DEFAULT_REVIEW_INTERVAL_DAYS


class ViewScope(Enum):
    """Which root tasks a list page starts from."""

    ALL = "all"
    INBOX = "inbox"
    TODAY = "today"
    SOMEDAY = "someday"

    @classmethod
    def from_string(cls, value: str) -> "ViewScope":
        token = (value or "").strip().lower()
        for scope in cls:
            if scope.value == token:
                return scope
        raise ValueError(f"Unknown view scope: {value!r}")


def _naive(moment: datetime) -> datetime:
    return moment.replace(tzinfo=None) if moment.tzinfo is not None else moment


def _in_scope(task: Task, scope: ViewScope, now: datetime) -> bool:
    if scope is ViewScope.INBOX:
        return task.project_id is None
    if scope is ViewScope.TODAY:
        return task.start_at is not None and _naive(task.start_at) <= now
    if scope is ViewScope.SOMEDAY:
        return task.someday and not task.is_completed
    return True


def root_ids(
    tree: TaskTree,
    project_id: Optional[int] = None,
    include_archived: bool = False,
    scope: ViewScope = ViewScope.ALL,
    now: Optional[datetime] = None,
) -> List[int]:
    """Root ids of a list page; ``now`` defaults to the current local time (TODAY scope)."""
    moment = _naive(now) if now is not None else datetime.now()
    ids: List[int] = []
    for task in tree:
        if task.parent_id is not None and task.parent_id in tree:
            continue
        if project_id is not None and task.project_id != project_id:
            continue
        project = tree.project(task.project_id)
        if project is not None and project.archived and not include_archived:
            continue
        if not _in_scope(task, scope, moment):
            continue
        ids.append(task.id)
    return ids


def visible_task_ids(
    tree: TaskTree,
    hide_non_actionable: bool = False,
    show_completed: bool = False,
    project_id: Optional[int] = None,
    include_archived: bool = False,
    scope: ViewScope = ViewScope.ALL,
    now: Optional[datetime] = None,
) -> List[int]:
    """Ids in DFS display order.

    ``hide_non_actionable`` drops tasks the actionability evaluator rejects
    (and therefore their subtrees); completed tasks still show when
    ``show_completed`` is on and their parent is visible.
    """
    roots = root_ids(tree, project_id, include_archived, scope=scope, now=now)
    nodes = flatten_tree(tree, roots, show_completed=show_completed)
    if not hide_non_actionable:
        return [node.task_id for node in nodes]

    actionable = compute_actionability(tree)
    visible: Set[int] = set()
    result: List[int] = []
    for node in nodes:
        if node.depth > 0 and node.parent_id not in visible:
            continue
        if actionable.get(node.task_id, False) or (show_completed and node.is_completed):
            visible.add(node.task_id)
            result.append(node.task_id)
    return result


@dataclass(frozen=True)
class ReviewView:
    due: List[int] = field(default_factory=list)
    recent: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"due": list(self.due), "recent": list(self.recent)}


def review_view(tree: TaskTree, today: date, interval_days: int = DEFAULT_REVIEW_INTERVAL_DAYS) -> ReviewView:
    return ReviewView(
        due=review_due(tree, today, interval_days),
        recent=recently_reviewed(tree, today, interval_days),
    )


__all__ = ["ViewScope", "root_ids", "visible_task_ids", "ReviewView", "review_view"]
