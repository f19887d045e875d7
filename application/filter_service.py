"""Filter intake: compile DSL text, gate submission, run queries over a tree."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from core import (
    FilterParseError,
    FilterQuery,
    FilterSnapshot,
    Suggestion,
    TaskTree,
    filter_tasks,
    parse,
    parse_filter,
    suggest,
)

logger = logging.getLogger("taskcore.filter")


@dataclass(frozen=True)
class CompiledFilter:
    text: str
    query: FilterQuery

    @property
    def canonical(self) -> str:
        return self.query.to_dsl()


@dataclass(frozen=True)
class SavedFilter:
    title: str
    query: str

    @classmethod
    def from_compiled(cls, title: str, compiled: CompiledFilter) -> "SavedFilter":
        return cls(title=title, query=compiled.canonical)

    def compile(self) -> CompiledFilter:
        return CompiledFilter(text=self.query, query=parse_filter(self.query))

    def to_dict(self) -> dict:
        return {"title": self.title, "query": self.query}


class FilterService:
    def compile(self, text: str) -> Union[CompiledFilter, FilterParseError]:
        result = parse(text)
        if not result.ok:
            return result.error
        return CompiledFilter(text=text or "", query=result.query)

    def can_submit(self, text: str) -> bool:
        """Submit is enabled only for non-empty text that parses."""
        if not (text or "").strip():
            return False
        return parse(text).ok

    def execute(self, compiled: CompiledFilter, tree: TaskTree) -> List[int]:
        """Matching root task ids, in ``ORDER BY`` order or manual order."""
        roots = [
            FilterSnapshot.from_tree(tree, task)
            for task in tree
            if task.parent_id is None or task.parent_id not in tree
        ]
        matches = filter_tasks(compiled.query, roots)
        logger.debug("filter %r matched %s of %s root tasks", compiled.canonical, len(matches), len(roots))
        return [snapshot.task.id for snapshot in matches]

    def suggest(self, text: str, tree: TaskTree, cursor: Optional[int] = None) -> List[Suggestion]:
        tags = sorted({tag for task in tree for tag in task.tags})
        projects = [p.title for p in tree.projects if not p.archived]
        return suggest(text, cursor, tags=tags, projects=projects)


__all__ = ["CompiledFilter", "SavedFilter", "FilterService"]
