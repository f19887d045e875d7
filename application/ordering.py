"""Ordering intake: translate drag/drop and keyboard moves into a sort key.

Keys are scoped by (parent, project-or-none). Every sibling in the scope,
completed or not, bounds a new key so keys never collide. Moves step over
the nearest sibling shown in the same group (active or completed).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from core import HierarchyError, OrderingInvariantViolation, Task, TaskTree, key_after, key_between, validate_parent

logger = logging.getLogger("taskcore.ordering")


class OrderingKind(Enum):
    INSERT_ABOVE = "insert-above"
    INSERT_BELOW = "insert-below"
    MOVE_UP = "move-up"
    MOVE_DOWN = "move-down"
    INDENT = "indent"
    UNINDENT = "unindent"
    REPARENT = "reparent"
    APPEND = "append"

    @classmethod
    def from_string(cls, value: str) -> "OrderingKind":
        token = (value or "").strip().lower().replace("_", "-")
        for kind in cls:
            if kind.value == token:
                return kind
        raise ValueError(f"Unknown ordering kind: {value!r}")


@dataclass(frozen=True)
class OrderingRequest:
    """One ordering gesture.

    ``task_id`` is the moved task (absent for insert/append of a new task),
    ``anchor_id`` the task an insertion is relative to, ``parent_id`` the
    target parent for ``reparent``/``append`` and ``project_id`` the root
    scope for ``append`` at the top level.
    """

    kind: OrderingKind
    task_id: Optional[int] = None
    anchor_id: Optional[int] = None
    parent_id: Optional[int] = None
    project_id: Optional[int] = None


@dataclass(frozen=True)
class OrderingPlan:
    sort_key: str
    parent_id: Optional[int]
    changed: bool = True

    def to_dict(self) -> dict:
        return {"sort_key": self.sort_key, "parent_id": self.parent_id, "changed": self.changed}


def _require(tree: TaskTree, task_id: Optional[int], role: str) -> Task:
    task = tree.get(task_id)
    if task is None:
        raise ValueError(f"{role} task not found: {task_id}")
    return task


def _scope(tree: TaskTree, parent_id: Optional[int], project_id: Optional[int], exclude: Optional[int] = None) -> List[Task]:
    return [t for t in tree.scope(parent_id, project_id) if t.id != exclude]


def _index(scope: List[Task], task: Task) -> int:
    for index, candidate in enumerate(scope):
        if candidate.id == task.id:
            return index
    raise ValueError(f"Task {task.id} is not ordered in its scope")


def _key_before(scope: List[Task], task: Task) -> Optional[str]:
    pos = _index(scope, task)
    return scope[pos - 1].sort_key if pos > 0 else None


def _key_after(scope: List[Task], task: Task) -> Optional[str]:
    pos = _index(scope, task)
    return scope[pos + 1].sort_key if pos + 1 < len(scope) else None


def _display_group(scope: List[Task], task: Task) -> List[Task]:
    # Lists show completed tasks after active ones; moves step within one group.
    return [t for t in scope if t.is_completed == task.is_completed]


def _unchanged(task: Task) -> OrderingPlan:
    return OrderingPlan(sort_key=task.sort_key, parent_id=task.parent_id, changed=False)


def _last_key(scope: List[Task]) -> Optional[str]:
    return scope[-1].sort_key if scope else None


def _plan_insert(tree: TaskTree, request: OrderingRequest) -> OrderingPlan:
    anchor = _require(tree, request.anchor_id, "Anchor")
    if anchor.id == request.task_id:
        return _unchanged(anchor)
    scope = _scope(tree, anchor.parent_id, anchor.project_id, exclude=request.task_id)
    if request.kind is OrderingKind.INSERT_ABOVE:
        key = key_between(_key_before(scope, anchor), anchor.sort_key)
    else:
        key = key_between(anchor.sort_key, _key_after(scope, anchor))
    return OrderingPlan(sort_key=key, parent_id=anchor.parent_id)


def _plan_move(tree: TaskTree, task: Task, up: bool) -> OrderingPlan:
    scope = _scope(tree, task.parent_id, task.project_id)
    group = _display_group(scope, task)
    pos = _index(group, task)
    if up:
        if pos == 0:
            return _unchanged(task)
        neighbour = group[pos - 1]
        key = key_between(_key_before(scope, neighbour), neighbour.sort_key)
    else:
        if pos == len(group) - 1:
            return _unchanged(task)
        neighbour = group[pos + 1]
        key = key_between(neighbour.sort_key, _key_after(scope, neighbour))
    return OrderingPlan(sort_key=key, parent_id=task.parent_id)


def _plan_indent(tree: TaskTree, task: Task) -> OrderingPlan:
    group = _display_group(_scope(tree, task.parent_id, task.project_id), task)
    pos = _index(group, task)
    if pos == 0:
        return _unchanged(task)
    new_parent = group[pos - 1]
    validate_parent(tree, task.id, new_parent.id)
    children = _scope(tree, new_parent.id, None, exclude=task.id)
    return OrderingPlan(sort_key=key_after(_last_key(children)), parent_id=new_parent.id)


def _plan_unindent(tree: TaskTree, task: Task) -> OrderingPlan:
    parent = tree.get(task.parent_id)
    if parent is None:
        return _unchanged(task)
    scope = _scope(tree, parent.parent_id, parent.project_id, exclude=task.id)
    key = key_between(parent.sort_key, _key_after(scope, parent))
    return OrderingPlan(sort_key=key, parent_id=parent.parent_id)


def _plan_reparent(tree: TaskTree, task: Task, parent_id: Optional[int]) -> OrderingPlan:
    validate_parent(tree, task.id, parent_id)
    if parent_id == task.parent_id:
        return _unchanged(task)
    scope = _scope(tree, parent_id, task.project_id, exclude=task.id)
    return OrderingPlan(sort_key=key_after(_last_key(scope)), parent_id=parent_id)


def _plan_append(tree: TaskTree, request: OrderingRequest) -> OrderingPlan:
    if request.parent_id is not None:
        _require(tree, request.parent_id, "Parent")
    scope = _scope(tree, request.parent_id, request.project_id, exclude=request.task_id)
    return OrderingPlan(sort_key=key_after(_last_key(scope)), parent_id=request.parent_id)


def plan_ordering(request: OrderingRequest, tree: TaskTree) -> OrderingPlan:
    """Compute the new sort key (and parent) for an ordering request.

    Raises:
        OrderingInvariantViolation: neighbouring keys are not strictly
            ordered (corrupted data). Logged at ERROR level first.
        HierarchyError: the target parent is the task itself, missing, or
            one of its descendants.
        ValueError: a referenced task does not exist.
    """
    try:
        kind = request.kind
        if kind in (OrderingKind.INSERT_ABOVE, OrderingKind.INSERT_BELOW):
            return _plan_insert(tree, request)
        if kind is OrderingKind.APPEND:
            return _plan_append(tree, request)
        task = _require(tree, request.task_id, "Moved")
        if kind in (OrderingKind.MOVE_UP, OrderingKind.MOVE_DOWN):
            return _plan_move(tree, task, up=kind is OrderingKind.MOVE_UP)
        if kind is OrderingKind.INDENT:
            return _plan_indent(tree, task)
        if kind is OrderingKind.UNINDENT:
            return _plan_unindent(tree, task)
        return _plan_reparent(tree, task, request.parent_id)
    except OrderingInvariantViolation as exc:
        logger.error(
            "ordering invariant violated for %s (task=%s anchor=%s): %s",
            request.kind.value,
            request.task_id,
            request.anchor_id,
            exc,
        )
        raise
    except HierarchyError as exc:
        logger.warning("rejected %s for task %s: %s", request.kind.value, request.task_id, exc)
        raise


__all__ = ["OrderingKind", "OrderingRequest", "OrderingPlan", "plan_ordering"]
