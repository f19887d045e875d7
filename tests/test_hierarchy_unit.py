from datetime import datetime

import pytest

from core import Project, ProjectStatus, Status, Task, TaskTree
from core.hierarchy import (
    HierarchyError,
    ancestors,
    detect_cycle,
    flatten_tree,
    validate_parent,
    would_create_cycle,
)

DONE = datetime(2024, 2, 1)


def _tree():
    return TaskTree(
        [
            Task(1, "Root A", "a0", project_id=7),
            Task(2, "Root B", "a1"),
            Task(3, "A.1", "a1", parent_id=1),
            Task(4, "A.0", "a0", parent_id=1),
            Task(5, "A.1.0", "a0", parent_id=3),
            Task(6, "A.done", "Zz", parent_id=1, completed_at=DONE),
        ],
        [Project(7, "Work")],
    )


def test_task_rejects_negative_limit():
    with pytest.raises(ValueError):
        Task(1, "x", sequential_limit=-1)


def test_task_tags_are_normalized():
    task = Task(1, "x", tags=frozenset({"Work", "work", " Home "}))
    assert task.tags == frozenset({"work", "home"})


def test_tree_rejects_duplicate_ids():
    with pytest.raises(ValueError):
        TaskTree([Task(1, "a"), Task(1, "b")])


def test_children_are_ordered_by_sort_key():
    tree = _tree()
    assert [t.id for t in tree.children(1)] == [6, 4, 3]


def test_root_scope_is_per_project():
    tree = _tree()
    assert [t.id for t in tree.siblings(1)] == [1]
    assert [t.id for t in tree.siblings(2)] == [2]
    assert tree.project_title(tree.get(1)) == "Work"
    assert tree.project_title(tree.get(2)) is None


def test_replace_returns_new_tree():
    tree = _tree()
    updated = tree.replace(Task(2, "Renamed", "a1"))
    assert updated.get(2).title == "Renamed"
    assert tree.get(2).title == "Root B"


def test_project_status_parsing():
    assert ProjectStatus.from_string("Archived") is ProjectStatus.ARCHIVED
    assert Project(1, "Old", ProjectStatus.ARCHIVED).archived
    with pytest.raises(ValueError):
        ProjectStatus.from_string("deleted")


def test_ancestors_walk_to_root():
    assert ancestors(_tree(), 5) == [3, 1]
    assert ancestors(_tree(), 1) == []


def test_ancestors_stop_on_cycle():
    tree = TaskTree([Task(1, "a", parent_id=2), Task(2, "b", parent_id=1)])
    assert ancestors(tree, 1) == [2]


def test_detect_cycle_for_descendant_parent():
    tree = _tree()
    assert detect_cycle(tree, 1, 5) == [1, 5, 3, 1]
    assert would_create_cycle(tree, 1, 5)
    assert not would_create_cycle(tree, 5, 2)
    assert detect_cycle(tree, 5, None) is None


def test_validate_parent_errors():
    tree = _tree()
    with pytest.raises(HierarchyError) as excinfo:
        validate_parent(tree, 1, 1)
    assert excinfo.value.error_type == "self"
    with pytest.raises(HierarchyError) as excinfo:
        validate_parent(tree, 1, 99)
    assert excinfo.value.error_type == "missing"
    with pytest.raises(HierarchyError) as excinfo:
        validate_parent(tree, 1, 3)
    assert excinfo.value.error_type == "cycle"
    validate_parent(tree, 5, 2)


def test_flatten_tree_dfs_hides_completed_by_default():
    nodes = flatten_tree(_tree(), [2, 1])
    assert [(n.task_id, n.depth) for n in nodes] == [(1, 0), (4, 1), (3, 1), (5, 2), (2, 0)]


def test_flatten_tree_puts_completed_after_active_siblings():
    nodes = flatten_tree(_tree(), [1, 2], show_completed=True)
    assert [n.task_id for n in nodes] == [1, 4, 3, 5, 6, 2]
    assert nodes[4].is_completed


@pytest.mark.parametrize(
    "word, expected",
    [
        ("active", Status.ACTIVE),
        (" open ", Status.ACTIVE),
        ("todo", Status.ACTIVE),
        ("Done", Status.COMPLETED),
        ("complete", Status.COMPLETED),
        ("sleeping", None),
        ("", None),
    ],
)
def test_task_status_words(word, expected):
    assert Status.from_string(word) is expected
