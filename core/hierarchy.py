"""Hierarchy helpers over the task arena.

Pure domain logic for walking parent links and flattening the tree.
No I/O operations - receives the tree as a parameter.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

from .task import Task, TaskTree


class HierarchyError(Exception):
    """Raised when a parent link would be invalid (cycle, self, missing)."""

    def __init__(self, task_id: int, error_type: str, details: str):
        super().__init__(f"{task_id}: {error_type} - {details}")
        self.task_id = task_id
        self.error_type = error_type  # "missing", "cycle", "self"
        self.details = details


@dataclass(frozen=True)
class FlatNode:
    task_id: int
    parent_id: Optional[int]
    depth: int
    is_completed: bool


def ancestors(tree: TaskTree, task_id: int) -> List[int]:
    """Ids from the direct parent up to the root.

    Stops at a missing parent or at an already visited id, so corrupted
    parent links never loop forever.
    """
    chain: List[int] = []
    seen: Set[int] = {task_id}
    task = tree.get(task_id)
    while task is not None and task.parent_id is not None:
        parent_id = task.parent_id
        if parent_id in seen:
            break
        chain.append(parent_id)
        seen.add(parent_id)
        task = tree.get(parent_id)
    return chain


def detect_cycle(tree: TaskTree, task_id: int, new_parent_id: Optional[int]) -> Optional[List[int]]:
    """Detect whether re-parenting ``task_id`` under ``new_parent_id`` creates a cycle.

    Returns:
        List of task IDs forming the cycle, or None if no cycle
    """
    if new_parent_id is None:
        return None
    if new_parent_id == task_id:
        return [task_id, task_id]
    path = [task_id, new_parent_id]
    for ancestor in ancestors(tree, new_parent_id):
        path.append(ancestor)
        if ancestor == task_id:
            return path
    return None


def would_create_cycle(tree: TaskTree, task_id: int, new_parent_id: Optional[int]) -> bool:
    return detect_cycle(tree, task_id, new_parent_id) is not None


def validate_parent(tree: TaskTree, task_id: int, new_parent_id: Optional[int]) -> None:
    """Raise HierarchyError unless ``new_parent_id`` is a valid parent for ``task_id``."""
    if new_parent_id is None:
        return
    if new_parent_id == task_id:
        raise HierarchyError(task_id, "self", "Task cannot be its own parent")
    if new_parent_id not in tree:
        raise HierarchyError(task_id, "missing", f"Parent '{new_parent_id}' not found")
    cycle = detect_cycle(tree, task_id, new_parent_id)
    if cycle:
        raise HierarchyError(task_id, "cycle", " -> ".join(str(t) for t in cycle))


def _split_completed(tasks: Sequence[Task]) -> List[Task]:
    active = [t for t in tasks if not t.is_completed]
    completed = [t for t in tasks if t.is_completed]
    return active + completed


def flatten_tree(tree: TaskTree, root_ids: Sequence[int], show_completed: bool = False) -> List[FlatNode]:
    """Build a flat traversal list (DFS pre-order).

    Per parent group, active tasks sorted by sort key come first, then
    completed tasks when ``show_completed`` is on.
    """
    nodes: List[FlatNode] = []
    roots = [t for t in (tree.get(i) for i in root_ids) if t is not None]
    roots.sort(key=lambda t: (t.sort_key, t.id))
    # Explicit stack; push in reverse so the first sibling is emitted first.
    stack = [(t, 0) for t in reversed(_split_completed(roots))]
    visited: Set[int] = set()
    while stack:
        task, depth = stack.pop()
        if task.id in visited:
            continue
        if task.is_completed and not show_completed:
            continue
        visited.add(task.id)
        nodes.append(FlatNode(task.id, task.parent_id, depth, task.is_completed))
        children = _split_completed(tree.children(task.id))
        for child in reversed(children):
            stack.append((child, depth + 1))
    return nodes


__all__ = [
    "HierarchyError",
    "FlatNode",
    "ancestors",
    "detect_cycle",
    "would_create_cycle",
    "validate_parent",
    "flatten_tree",
]
