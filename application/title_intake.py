"""Task-creation intake: turn a raw typed title into task fields."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from core import Project, parse_title

logger = logging.getLogger("taskcore.intake")


@dataclass(frozen=True)
class TitleIntake:
    title: str
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "project_id": self.project_id,
            "project_name": self.project_name,
            "tags": list(self.tags),
            "url": self.url,
        }


def resolve_project(name: Optional[str], projects: Iterable[Project]) -> Optional[Project]:
    """Case-insensitive match of ``name`` against active project titles."""
    if not name:
        return None
    wanted = name.lower()
    for project in projects:
        if not project.archived and project.title.lower() == wanted:
            return project
    return None


def intake_title(raw: str, projects: Iterable[Project] = ()) -> TitleIntake:
    parsed = parse_title(raw or "")
    project = resolve_project(parsed.project, projects)
    if parsed.project and project is None:
        logger.debug("no active project named %r; keeping name for the caller", parsed.project)
    return TitleIntake(
        title=parsed.cleaned,
        project_id=project.id if project else None,
        project_name=parsed.project,
        tags=list(parsed.tags),
        url=parsed.url,
    )


__all__ = ["TitleIntake", "intake_title", "resolve_project"]
