import logging
from datetime import datetime

import pytest

from application.ordering import OrderingKind, OrderingPlan, OrderingRequest, plan_ordering
from core import HierarchyError, OrderingInvariantViolation, Task, TaskTree


def _tree():
    return TaskTree(
        [
            Task(1, "A", "a0"),
            Task(2, "B", "a1"),
            Task(3, "C", "a2"),
            Task(4, "B.0", "a0", parent_id=2),
            Task(5, "B.1", "a1", parent_id=2),
            Task(6, "Done", "a0V", completed_at=datetime(2024, 1, 1)),
            Task(7, "Other project", "a0", project_id=9),
        ]
    )


def _plan(kind, **kwargs):
    return plan_ordering(OrderingRequest(kind, **kwargs), _tree())


def test_kind_from_string():
    assert OrderingKind.from_string("move_up") is OrderingKind.MOVE_UP
    with pytest.raises(ValueError):
        OrderingKind.from_string("sideways")


def test_insert_above_and_below_anchor():
    above = _plan(OrderingKind.INSERT_ABOVE, anchor_id=2)
    assert "a0" < above.sort_key < "a1"
    assert above.parent_id is None
    below = _plan(OrderingKind.INSERT_BELOW, anchor_id=3)
    assert below.sort_key > "a2"
    first = _plan(OrderingKind.INSERT_ABOVE, anchor_id=1)
    assert first.sort_key < "a0"


def test_new_keys_never_collide_with_completed_siblings():
    tree = _tree()
    plan = plan_ordering(OrderingRequest(OrderingKind.INSERT_BELOW, anchor_id=1), tree)
    assert "a0" < plan.sort_key < "a0V"
    assert plan.sort_key not in {t.sort_key for t in tree.siblings(1)}


def test_append_goes_after_completed_children():
    tree = TaskTree(
        [
            Task(1, "Parent", "a0"),
            Task(2, "Open", "a0", parent_id=1),
            Task(3, "Closed", "a1", parent_id=1, completed_at=datetime(2024, 1, 1)),
        ]
    )
    plan = plan_ordering(OrderingRequest(OrderingKind.APPEND, parent_id=1), tree)
    assert plan == OrderingPlan("a2", 1)


def test_completed_task_can_be_an_anchor_or_moved():
    tree = _tree()
    below = plan_ordering(OrderingRequest(OrderingKind.INSERT_BELOW, anchor_id=6), tree)
    assert "a0V" < below.sort_key < "a1"
    above = plan_ordering(OrderingRequest(OrderingKind.INSERT_ABOVE, anchor_id=6), tree)
    assert "a0" < above.sort_key < "a0V"
    assert plan_ordering(OrderingRequest(OrderingKind.MOVE_UP, task_id=6), tree).changed is False


def test_move_steps_over_active_neighbour_past_completed_sibling():
    tree = _tree()
    plan = plan_ordering(OrderingRequest(OrderingKind.MOVE_UP, task_id=2), tree)
    assert plan.sort_key < "a0"
    down = plan_ordering(OrderingRequest(OrderingKind.MOVE_DOWN, task_id=1), tree)
    assert "a1" < down.sort_key < "a2"


def test_insert_relative_to_itself_is_noop():
    plan = _plan(OrderingKind.INSERT_BELOW, task_id=2, anchor_id=2)
    assert plan == OrderingPlan("a1", None, changed=False)


def test_unindent_from_completed_parent_lands_after_it():
    tree = TaskTree(
        [
            Task(1, "Done parent", "a0", completed_at=datetime(2024, 1, 1)),
            Task(2, "Child", "a0", parent_id=1),
            Task(3, "Next", "a1"),
        ]
    )
    plan = plan_ordering(OrderingRequest(OrderingKind.UNINDENT, task_id=2), tree)
    assert plan.parent_id is None
    assert "a0" < plan.sort_key < "a1"


def test_move_up_and_down():
    up = _plan(OrderingKind.MOVE_UP, task_id=3)
    assert "a0" < up.sort_key < "a1"
    down = _plan(OrderingKind.MOVE_DOWN, task_id=1)
    assert "a1" < down.sort_key < "a2"
    assert _plan(OrderingKind.MOVE_UP, task_id=2).sort_key < "a0"
    assert _plan(OrderingKind.MOVE_DOWN, task_id=2).sort_key > "a2"


def test_boundary_moves_are_noops():
    assert _plan(OrderingKind.MOVE_UP, task_id=1) == OrderingPlan("a0", None, changed=False)
    assert _plan(OrderingKind.MOVE_DOWN, task_id=3) == OrderingPlan("a2", None, changed=False)
    assert _plan(OrderingKind.MOVE_UP, task_id=7) == OrderingPlan("a0", None, changed=False)


def test_indent_becomes_last_child_of_previous_sibling():
    plan = _plan(OrderingKind.INDENT, task_id=3)
    assert plan.parent_id == 2
    assert plan.sort_key > "a1"
    assert not _plan(OrderingKind.INDENT, task_id=1).changed


def test_unindent_lands_after_former_parent():
    plan = _plan(OrderingKind.UNINDENT, task_id=4)
    assert plan.parent_id is None
    assert "a1" < plan.sort_key < "a2"
    assert not _plan(OrderingKind.UNINDENT, task_id=1).changed


def test_reparent_appends_to_new_parent():
    plan = _plan(OrderingKind.REPARENT, task_id=1, parent_id=2)
    assert plan == OrderingPlan("a2", 2)
    to_root = _plan(OrderingKind.REPARENT, task_id=4, parent_id=None)
    assert to_root.parent_id is None
    assert to_root.sort_key > "a2"


def test_reparent_into_descendant_is_rejected():
    with pytest.raises(HierarchyError):
        _plan(OrderingKind.REPARENT, task_id=2, parent_id=4)


def test_append_new_task():
    assert _plan(OrderingKind.APPEND) == OrderingPlan("a3", None)
    assert _plan(OrderingKind.APPEND, parent_id=2) == OrderingPlan("a2", 2)
    assert _plan(OrderingKind.APPEND, project_id=9) == OrderingPlan("a1", None)
    assert plan_ordering(OrderingRequest(OrderingKind.APPEND), TaskTree()) == OrderingPlan("a0", None)


def test_missing_task_raises_value_error():
    with pytest.raises(ValueError):
        _plan(OrderingKind.MOVE_UP, task_id=99)
    with pytest.raises(ValueError):
        _plan(OrderingKind.INSERT_ABOVE, anchor_id=99)


def test_collided_keys_raise_and_log(caplog):
    tree = TaskTree([Task(1, "A", "a1"), Task(2, "B", "a1"), Task(3, "C", "a2")])
    with caplog.at_level(logging.ERROR, logger="taskcore.ordering"):
        with pytest.raises(OrderingInvariantViolation):
            plan_ordering(OrderingRequest(OrderingKind.INSERT_BELOW, anchor_id=1), tree)
    assert any("ordering invariant violated" in r.getMessage() for r in caplog.records)
