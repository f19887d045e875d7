from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

import config
from application.filter_service import FilterService
from application.ordering import OrderingKind, OrderingRequest, plan_ordering
from application.ports import TaskSnapshotSource
from application.title_intake import intake_title
from application.views import ViewScope, review_view, visible_task_ids
from core import FilterParseError, HierarchyError, OrderingInvariantViolation, keys_between
from infrastructure.snapshot_parser import SnapshotError
from interface.cli_io import exception_response, structured_error, structured_response, validation_response

RepositoryFactory = Callable[[Optional[str]], TaskSnapshotSource]


@dataclass
class CliDeps:
    repository_factory: RepositoryFactory
    today: Callable[[], date] = date.today
    now: Callable[[], datetime] = datetime.now
    filters: Optional[FilterService] = None

    def __post_init__(self) -> None:
        if self.filters is None:
            self.filters = FilterService()


def _load(args, deps: CliDeps):
    return deps.repository_factory(getattr(args, "snapshot", None)).load()


def cmd_parse_title(args, deps: CliDeps) -> int:
    try:
        projects = _load(args, deps).projects if getattr(args, "snapshot", None) else []
    except SnapshotError as exc:
        return exception_response("parse-title", exc)
    intake = intake_title(args.title, projects)
    return structured_response("parse-title", message=intake.title, payload=intake.to_dict())


def cmd_key_between(args, deps: CliDeps) -> int:
    try:
        keys = keys_between(args.before or None, args.after or None, args.count)
    except OrderingInvariantViolation as exc:
        return exception_response("key-between", exc)
    except ValueError as exc:
        return structured_error("key-between", str(exc))
    return structured_response("key-between", message=", ".join(keys), payload={"keys": keys})


def cmd_order(args, deps: CliDeps) -> int:
    try:
        tree = _load(args, deps)
        request = OrderingRequest(
            kind=OrderingKind.from_string(args.kind),
            task_id=args.task_id,
            anchor_id=args.anchor_id,
            parent_id=args.parent_id,
            project_id=args.project_id,
        )
        plan = plan_ordering(request, tree)
    except (SnapshotError, OrderingInvariantViolation, HierarchyError) as exc:
        return exception_response("order", exc)
    except ValueError as exc:
        return structured_error("order", str(exc))
    message = plan.sort_key if plan.changed else "no change"
    return structured_response("order", message=message, payload=plan.to_dict())


def _flag(value: Optional[bool], fallback: Callable[[], bool]) -> bool:
    return fallback() if value is None else value


def cmd_view(args, deps: CliDeps) -> int:
    scope = ViewScope.from_string(getattr(args, "scope", None) or "all")
    now_text = getattr(args, "now", None)
    try:
        now = datetime.fromisoformat(now_text) if now_text else deps.now()
    except ValueError:
        return structured_error("view", f"invalid --now: {now_text!r} (expected YYYY-MM-DDTHH:MM)")
    try:
        tree = _load(args, deps)
    except SnapshotError as exc:
        return exception_response("view", exc)
    hide = _flag(args.hide_non_actionable, config.get_hide_non_actionable)
    show_completed = _flag(args.show_completed, config.get_show_completed)
    ids = visible_task_ids(
        tree,
        hide_non_actionable=hide,
        show_completed=show_completed,
        project_id=args.project_id,
        include_archived=args.include_archived,
        scope=scope,
        now=now,
    )
    tasks = [{"id": i, "title": tree.get(i).title} for i in ids]
    payload: Dict[str, Any] = {
        "scope": scope.value,
        "hide_non_actionable": hide,
        "show_completed": show_completed,
        "ids": ids,
        "tasks": tasks,
    }
    return structured_response("view", message=f"{len(ids)} tasks", payload=payload)


def cmd_filter(args, deps: CliDeps) -> int:
    compiled = deps.filters.compile(args.query)
    if isinstance(compiled, FilterParseError):
        return exception_response("filter", compiled)
    try:
        tree = _load(args, deps)
    except SnapshotError as exc:
        return exception_response("filter", exc)
    ids = deps.filters.execute(compiled, tree)
    payload = {
        "query": compiled.canonical,
        "ids": ids,
        "tasks": [{"id": i, "title": tree.get(i).title} for i in ids],
    }
    return structured_response("filter", message=f"{len(ids)} matches", payload=payload)


def cmd_check_filter(args, deps: CliDeps) -> int:
    compiled = deps.filters.compile(args.query)
    if isinstance(compiled, FilterParseError):
        return validation_response("check-filter", False, compiled.message, payload=compiled.to_dict())
    payload = {"query": compiled.canonical, "can_submit": deps.filters.can_submit(args.query)}
    return validation_response("check-filter", True, "ok", payload=payload)


def cmd_suggest(args, deps: CliDeps) -> int:
    try:
        tree = _load(args, deps)
    except SnapshotError as exc:
        return exception_response("suggest", exc)
    items = deps.filters.suggest(args.query, tree, cursor=args.cursor)
    return structured_response(
        "suggest",
        message=f"{len(items)} suggestions",
        payload={"suggestions": [s.to_dict() for s in items]},
    )


def cmd_review(args, deps: CliDeps) -> int:
    try:
        today = date.fromisoformat(args.today) if args.today else deps.today()
    except ValueError:
        return structured_error("review", f"invalid --today: {args.today!r} (expected YYYY-MM-DD)")
    interval = args.interval_days if args.interval_days is not None else config.get_review_interval_days()
    if interval < 1:
        return structured_error("review", "--interval must be positive")
    try:
        tree = _load(args, deps)
    except SnapshotError as exc:
        return exception_response("review", exc)
    view = review_view(tree, today, interval)
    payload = {"today": today, "interval_days": interval, **view.to_dict()}
    return structured_response("review", message=f"{len(view.due)} due for review", payload=payload)
