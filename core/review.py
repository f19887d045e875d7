"""Weekly-review selection.

Only root tasks take part in review: subtasks are reviewed together with
their parent. A task that was never reviewed is due.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional, Union

from .task import Task, TaskTree

DEFAULT_REVIEW_INTERVAL_DAYS = 7
RECENTLY_REVIEWED_LIMIT = 50


def _as_date(value: Optional[Union[date, datetime]]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


def _in_review(tree: TaskTree, task: Task) -> bool:
    if task.is_completed or not task.is_root:
        return False
    project = tree.project(task.project_id)
    return project is None or not project.archived


def is_review_due(task: Task, today: date, interval_days: int = DEFAULT_REVIEW_INTERVAL_DAYS) -> bool:
    if task.is_completed or not task.is_root:
        return False
    reviewed = _as_date(task.reviewed_at)
    if reviewed is None:
        return True
    return reviewed <= today - timedelta(days=interval_days)


def review_due(tree: TaskTree, today: date, interval_days: int = DEFAULT_REVIEW_INTERVAL_DAYS) -> List[int]:
    """Ids due for review: never reviewed first, then oldest review, then sort key."""
    due = [t for t in tree if _in_review(tree, t) and is_review_due(t, today, interval_days)]
    due.sort(
        key=lambda t: (
            _as_date(t.reviewed_at) is not None,
            _as_date(t.reviewed_at) or date.min,
            t.sort_key,
            t.id,
        )
    )
    return [t.id for t in due]


def recently_reviewed(
    tree: TaskTree,
    today: date,
    interval_days: int = DEFAULT_REVIEW_INTERVAL_DAYS,
    limit: int = RECENTLY_REVIEWED_LIMIT,
) -> List[int]:
    """Reviewed root tasks that are not yet due again, newest review first."""
    recent = [
        t
        for t in tree
        if _in_review(tree, t) and t.reviewed_at is not None and not is_review_due(t, today, interval_days)
    ]
    recent.sort(key=lambda t: (t.sort_key, t.id))
    recent.sort(key=lambda t: _as_date(t.reviewed_at), reverse=True)
    return [t.id for t in recent[:limit]]


__all__ = [
    "DEFAULT_REVIEW_INTERVAL_DAYS",
    "RECENTLY_REVIEWED_LIMIT",
    "is_review_due",
    "review_due",
    "recently_reviewed",
]
