import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import yaml

from core import Project, ProjectStatus, Task, TaskTree

logger = logging.getLogger("taskcore.snapshot")


class SnapshotError(Exception):
    """Malformed snapshot document."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(f"{source}: {message}" if source else message)
        self.message = message
        self.source = source


class SnapshotParser:
    """YAML <-> TaskTree.

    Document shape::

        projects:
          - {id: 1, title: Work, status: active}
        tasks:
          - {id: 10, title: Write report, sort_key: a0, project_id: 1, tags: [docs]}
    """

    TASK_DATETIME_FIELDS = ("completed_at", "start_at", "created_at", "updated_at")
    TASK_DATE_FIELDS = ("reviewed_at", "due_date")

    @staticmethod
    def _coerce_datetime(value: Any, field: str) -> Optional[datetime]:
        """YAML loaders already turn ISO-8601 values into date/datetime objects; strings are parsed here."""
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        try:
            return datetime.fromisoformat(str(value).strip())
        except ValueError:
            raise SnapshotError(f"invalid timestamp for {field}: {value!r}") from None

    @staticmethod
    def _coerce_date(value: Any, field: str) -> Optional[date]:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip()[:10])
        except ValueError:
            raise SnapshotError(f"invalid date for {field}: {value!r}") from None

    @staticmethod
    def _coerce_id(value: Any, field: str, required: bool = False) -> Optional[int]:
        if value is None or value == "":
            if required:
                raise SnapshotError(f"missing {field}")
            return None
        return SnapshotParser._coerce_int(value, field)

    @staticmethod
    def _coerce_int(value: Any, field: str) -> int:
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise SnapshotError(f"invalid {field}: {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise SnapshotError(f"invalid {field}: {value!r}") from None

    @staticmethod
    def _coerce_bool(value: Any, field: str) -> bool:
        if value is None:
            return False
        if not isinstance(value, bool):
            raise SnapshotError(f"invalid {field}: {value!r} (expected true or false)")
        return value

    @classmethod
    def _parse_project(cls, raw: Any) -> Project:
        if not isinstance(raw, dict):
            raise SnapshotError(f"project entry must be a mapping, got {type(raw).__name__}")
        try:
            status = ProjectStatus.from_string(raw.get("status") or "active")
        except ValueError as exc:
            raise SnapshotError(str(exc)) from None
        return Project(
            id=cls._coerce_id(raw.get("id"), "project id", required=True),
            title=str(raw.get("title", "") or ""),
            status=status,
            color=str(raw.get("color", "") or ""),
        )

    @classmethod
    def _parse_task(cls, raw: Any) -> Task:
        if not isinstance(raw, dict):
            raise SnapshotError(f"task entry must be a mapping, got {type(raw).__name__}")
        task_id = cls._coerce_id(raw.get("id"), "task id", required=True)
        tags = raw.get("tags") or []
        if isinstance(tags, str):
            tags = [t for t in tags.replace(",", " ").split() if t]
        if not isinstance(tags, list):
            raise SnapshotError(f"task {task_id}: tags must be a list")
        raw_limit = raw.get("sequential_limit")
        limit = 0 if raw_limit is None else cls._coerce_int(raw_limit, f"task {task_id} sequential_limit")
        fields: Dict[str, Any] = {}
        for name in cls.TASK_DATETIME_FIELDS:
            fields[name] = cls._coerce_datetime(raw.get(name), f"task {task_id} {name}")
        for name in cls.TASK_DATE_FIELDS:
            fields[name] = cls._coerce_date(raw.get(name), f"task {task_id} {name}")
        body = raw.get("body")
        try:
            return Task(
                id=task_id,
                title=str(raw.get("title", "") or ""),
                sort_key=str(raw.get("sort_key", "") or ""),
                parent_id=cls._coerce_id(raw.get("parent_id"), f"task {task_id} parent_id"),
                project_id=cls._coerce_id(raw.get("project_id"), f"task {task_id} project_id"),
                sequential_limit=limit,
                body=None if body is None else str(body),
                someday=cls._coerce_bool(raw.get("someday"), f"task {task_id} someday"),
                tags=frozenset(str(t) for t in tags),
                **fields,
            )
        except ValueError as exc:
            raise SnapshotError(f"task {task_id}: {exc}") from None

    @classmethod
    def parse(cls, content: str, source: str = "") -> TaskTree:
        try:
            document = yaml.safe_load(content) or {}
        except yaml.YAMLError as exc:
            raise SnapshotError(f"invalid YAML: {exc}", source) from None
        if not isinstance(document, dict):
            raise SnapshotError("top level must be a mapping", source)
        raw_projects = document.get("projects") or []
        raw_tasks = document.get("tasks") or []
        if not isinstance(raw_projects, list) or not isinstance(raw_tasks, list):
            raise SnapshotError("'projects' and 'tasks' must be lists", source)
        try:
            projects = [cls._parse_project(p) for p in raw_projects]
            tasks = [cls._parse_task(t) for t in raw_tasks]
            tree = TaskTree(tasks, projects)
        except SnapshotError as exc:
            raise SnapshotError(exc.message, source) from None
        except ValueError as exc:
            raise SnapshotError(str(exc), source) from None
        logger.debug("parsed snapshot %s: %s projects, %s tasks", source or "<string>", len(projects), len(tasks))
        return tree

    @staticmethod
    def _task_to_dict(task: Task) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": task.id, "title": task.title, "sort_key": task.sort_key}
        optional = {
            "parent_id": task.parent_id,
            "project_id": task.project_id,
            "body": task.body,
            "completed_at": task.completed_at,
            "reviewed_at": task.reviewed_at,
            "start_at": task.start_at,
            "due_date": task.due_date,
            "created_at": task.created_at,
            "updated_at": task.updated_at,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        if task.sequential_limit:
            data["sequential_limit"] = task.sequential_limit
        if task.someday:
            data["someday"] = True
        if task.tags:
            data["tags"] = sorted(task.tags)
        return data

    @classmethod
    def to_yaml(cls, tree: TaskTree) -> str:
        projects: List[Dict[str, Any]] = []
        for project in sorted(tree.projects, key=lambda p: p.id):
            entry: Dict[str, Any] = {"id": project.id, "title": project.title, "status": project.status.value}
            if project.color:
                entry["color"] = project.color
            projects.append(entry)
        tasks = [cls._task_to_dict(t) for t in sorted(tree, key=lambda t: t.id)]
        return yaml.safe_dump({"projects": projects, "tasks": tasks}, allow_unicode=True, sort_keys=False)
