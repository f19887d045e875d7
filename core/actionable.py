"""Actionability under per-parent sequential limits.

A task is actionable when it is not completed, not someday, and either a
root or an actionable parent's child ranked inside the parent's
``sequential_limit`` among eligible (non-completed, non-someday) siblings in
sort-key order. A limit of 0 means unlimited.
"""

from typing import Dict, List, Set

from .task import Task, TaskTree


def _eligible(task: Task) -> bool:
    return not task.is_completed and not task.someday


def compute_actionability(tree: TaskTree) -> Dict[int, bool]:
    """Return ``{task_id: actionable}`` for every task in the tree.

    Tasks whose parent is absent from the snapshot are treated as roots.
    Tasks unreachable from any root (corrupted parent cycles) are reported
    as not actionable.
    """
    result: Dict[int, bool] = {task.id: False for task in tree}
    roots: List[Task] = [t for t in tree if t.parent_id is None or t.parent_id not in tree]
    stack: List[Task] = []
    for root in roots:
        result[root.id] = _eligible(root)
        stack.append(root)

    visited: Set[int] = set()
    while stack:
        parent = stack.pop()
        if parent.id in visited:
            continue
        visited.add(parent.id)
        parent_ok = result[parent.id]
        limit = parent.sequential_limit
        rank = 0
        for child in tree.children(parent.id):
            if _eligible(child):
                within_limit = limit == 0 or rank < limit
                rank += 1
                result[child.id] = parent_ok and within_limit
            else:
                result[child.id] = False
            stack.append(child)
    return result


def actionable_ids(tree: TaskTree) -> Set[int]:
    return {task_id for task_id, ok in compute_actionability(tree).items() if ok}


def is_actionable(tree: TaskTree, task_id: int) -> bool:
    return compute_actionability(tree).get(task_id, False)


__all__ = ["compute_actionability", "actionable_ids", "is_actionable"]
