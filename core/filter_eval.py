"""Evaluate parsed filter queries against task snapshots.

Evaluation is pure and total: missing fields, unparseable values and
operators a field does not accept all evaluate to ``False`` instead of
raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from util.glob_match import glob_match

from .filter_dsl import (
    And,
    Condition,
    FieldKind,
    FilterExpr,
    FilterField,
    FilterOp,
    FilterQuery,
    FilterValue,
    Not,
    Or,
    OrderBy,
    SortDirection,
    descriptor,
    format_number,
    parse_date_value,
    parse_datetime_value,
)
from .status import Status, status_of
from .task import Task, TaskTree, normalize_tag


@dataclass(frozen=True)
class FilterSnapshot:
    """Read-only view of a task with its project title resolved."""

    task: Task
    project_title: Optional[str] = None

    @classmethod
    def from_tree(cls, tree: TaskTree, task: Task) -> "FilterSnapshot":
        return cls(task=task, project_title=tree.project_title(task))

    @property
    def status(self) -> Status:
        return status_of(self.task.is_completed)

    def value_of(self, field: FilterField) -> Any:
        return _ACCESSORS[field](self)


_ACCESSORS: Dict[FilterField, Callable[[FilterSnapshot], Any]] = {
    FilterField.TITLE: lambda s: s.task.title,
    FilterField.BODY: lambda s: s.task.body or None,
    FilterField.PROJECT: lambda s: s.project_title,
    FilterField.TAGS: lambda s: s.task.tags,
    FilterField.STATUS: lambda s: s.status,
    FilterField.DUE_DATE: lambda s: s.task.due_date,
    FilterField.START_AT: lambda s: s.task.start_at,
    FilterField.CREATED: lambda s: s.task.created_at,
    FilterField.UPDATED: lambda s: s.task.updated_at,
    FilterField.REVIEWED: lambda s: s.task.reviewed_at,
}


def _as_text(value: FilterValue) -> Optional[str]:
    if value is None or isinstance(value, tuple):
        return None
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def _items(value: FilterValue) -> Tuple[FilterValue, ...]:
    return value if isinstance(value, tuple) else (value,)


# ── Per-kind matchers ──────────────────────────────────────────────────


def _match_text(actual: Optional[str], op: FilterOp, value: FilterValue) -> bool:
    if op is FilterOp.IS:
        return actual is None
    if op is FilterOp.IS_NOT:
        return actual is not None

    def equals(candidate: FilterValue) -> bool:
        text = _as_text(candidate)
        return actual is not None and text is not None and actual.lower() == text.lower()

    def globs(candidate: FilterValue) -> bool:
        text = _as_text(candidate)
        return actual is not None and text is not None and glob_match(text, actual)

    if op is FilterOp.EQ:
        return equals(value)
    if op is FilterOp.NE:
        return not equals(value)
    if op is FilterOp.GLOB:
        return globs(value)
    if op is FilterOp.NOT_GLOB:
        return not globs(value)
    if op is FilterOp.IN:
        return any(equals(v) for v in _items(value))
    if op is FilterOp.NOT_IN:
        return not any(equals(v) for v in _items(value))
    return False


def _match_tags(tags: FrozenSet[str], op: FilterOp, value: FilterValue) -> bool:
    if op is FilterOp.IS:
        return not tags
    if op is FilterOp.IS_NOT:
        return bool(tags)

    def has(candidate: FilterValue) -> bool:
        text = _as_text(candidate)
        return text is not None and normalize_tag(text) in tags

    def any_glob(candidate: FilterValue) -> bool:
        text = _as_text(candidate)
        return text is not None and any(glob_match(text, tag) for tag in tags)

    if op is FilterOp.EQ:
        return has(value)
    if op is FilterOp.NE:
        return not has(value)
    if op is FilterOp.GLOB:
        return any_glob(value)
    if op is FilterOp.NOT_GLOB:
        return not any_glob(value)
    if op is FilterOp.IN:
        return any(has(v) for v in _items(value))
    if op is FilterOp.NOT_IN:
        return not any(has(v) for v in _items(value))
    return False


def _match_status(actual: Status, op: FilterOp, value: FilterValue) -> bool:
    wanted: List[Status] = []
    for item in _items(value):
        status = Status.from_string(item) if isinstance(item, str) else None
        if status is None:
            return False
        wanted.append(status)
    if op is FilterOp.EQ or op is FilterOp.IN:
        return actual in wanted
    if op is FilterOp.NE or op is FilterOp.NOT_IN:
        return actual not in wanted
    return False


_Temporal = Union[date, datetime]


def _compare(actual: Any, op: FilterOp, expected: Any) -> bool:
    if op is FilterOp.EQ:
        return actual == expected
    if op is FilterOp.NE:
        return actual != expected
    if op is FilterOp.GT:
        return actual > expected
    if op is FilterOp.LT:
        return actual < expected
    if op is FilterOp.GTE:
        return actual >= expected
    if op is FilterOp.LTE:
        return actual <= expected
    return False


def _naive(moment: datetime) -> datetime:
    return moment.replace(tzinfo=None) if moment.tzinfo is not None else moment


def _match_temporal(actual: Optional[_Temporal], kind: FieldKind, op: FilterOp, value: FilterValue) -> bool:
    if op is FilterOp.IS:
        return actual is None
    if op is FilterOp.IS_NOT:
        return actual is not None
    if isinstance(value, tuple) or not isinstance(value, str):
        return False

    day = parse_date_value(value)
    if kind is FieldKind.DATE or day is not None:
        # Day granularity: a date-only value compares against the calendar day.
        if day is None:
            return False
        if actual is None:
            return op is FilterOp.NE
        actual_day = actual.date() if isinstance(actual, datetime) else actual
        return _compare(actual_day, op, day)

    moment = parse_datetime_value(value)
    if moment is None:
        return False
    if actual is None:
        return op is FilterOp.NE
    if not isinstance(actual, datetime):
        actual = datetime(actual.year, actual.month, actual.day)
    return _compare(_naive(actual), op, moment)


def evaluate_condition(condition: Condition, snapshot: FilterSnapshot) -> bool:
    desc = descriptor(condition.field)
    if not desc.accepts(condition.op):
        return False
    actual = snapshot.value_of(condition.field)
    kind = desc.kind
    if kind in (FieldKind.TEXT, FieldKind.PROJECT):
        return _match_text(actual, condition.op, condition.value)
    if kind is FieldKind.TAGS:
        return _match_tags(actual, condition.op, condition.value)
    if kind is FieldKind.STATUS:
        return _match_status(actual, condition.op, condition.value)
    return _match_temporal(actual, kind, condition.op, condition.value)


def evaluate(query: Union[FilterQuery, FilterExpr, None], snapshot: FilterSnapshot) -> bool:
    """Return True when ``snapshot`` satisfies ``query``.

    Accepts a whole ``FilterQuery`` (``ORDER BY`` is ignored here) or a bare
    expression; ``None`` and the empty query match every task.
    """
    expr = query.expression if isinstance(query, FilterQuery) else query
    return _evaluate_iterative(expr, snapshot) if expr is not None else True


def _evaluate_iterative(root: FilterExpr, snapshot: FilterSnapshot) -> bool:
    results: List[bool] = []
    stack: List[Tuple[FilterExpr, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if isinstance(node, Condition):
            results.append(evaluate_condition(node, snapshot))
        elif isinstance(node, Not):
            if expanded:
                results.append(not results.pop())
            else:
                stack.append((node, True))
                stack.append((node.operand, False))
        elif isinstance(node, (And, Or)):
            if expanded:
                right = results.pop()
                left = results.pop()
                results.append(left and right if isinstance(node, And) else left or right)
            else:
                stack.append((node, True))
                stack.append((node.right, False))
                stack.append((node.left, False))
        else:
            raise TypeError(f"Unsupported filter node: {type(node).__name__}")
    return results[-1]


# ── Ordering ───────────────────────────────────────────────────────────


def _sort_value(snapshot: FilterSnapshot, field: FilterField) -> Any:
    value = snapshot.value_of(field)
    if value is None:
        return None
    if isinstance(value, str):
        return value.lower()
    if isinstance(value, datetime):
        return _naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return value


def sort_results(snapshots: Iterable[FilterSnapshot], order_by: Optional[OrderBy]) -> List[FilterSnapshot]:
    """Order snapshots by ``order_by``; sort key then id break ties, nulls go last.

    Without ``order_by`` the manual sort-key order is returned.
    """
    items = sorted(snapshots, key=lambda s: (s.task.sort_key, s.task.id))
    if order_by is None:
        return items
    present: List[Tuple[Any, FilterSnapshot]] = []
    missing: List[FilterSnapshot] = []
    for snapshot in items:
        value = _sort_value(snapshot, order_by.field)
        if value is None:
            missing.append(snapshot)
        else:
            present.append((value, snapshot))
    present.sort(key=lambda pair: pair[0], reverse=order_by.direction is SortDirection.DESC)
    return [snapshot for _, snapshot in present] + missing


def filter_tasks(query: FilterQuery, snapshots: Sequence[FilterSnapshot]) -> List[FilterSnapshot]:
    return sort_results((s for s in snapshots if evaluate(query, s)), query.order_by)


__all__ = [
    "FilterSnapshot",
    "evaluate",
    "evaluate_condition",
    "sort_results",
    "filter_tasks",
]
