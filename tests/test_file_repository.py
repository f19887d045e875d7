from datetime import date, datetime
from pathlib import Path

import pytest

from core import Project, ProjectStatus, Task, TaskTree
from infrastructure.file_repository import FileSnapshotRepository
from infrastructure.snapshot_parser import SnapshotError, SnapshotParser

SAMPLE = """
projects:
  - id: 1
    title: Work
    color: "#ff0000"
  - id: 2
    title: Garden
    status: archived
tasks:
  - id: 10
    title: Write report
    sort_key: a0
    project_id: 1
    sequential_limit: 2
    tags:
      - Docs
      - "q3:plan"
    due_date: 2024-01-15
    created_at: 2024-01-01T09:00:00
  - id: 11
    title: Outline
    sort_key: a0
    parent_id: 10
    completed_at: "2024-01-02T10:30:00"
    reviewed_at: "2024-01-03"
    someday: true
    body: |
      first draft
"""


def test_parse_sample_snapshot():
    tree = SnapshotParser.parse(SAMPLE)
    assert len(tree) == 2
    report = tree.get(10)
    assert report.tags == frozenset({"docs", "q3:plan"})
    assert report.due_date == date(2024, 1, 15)
    assert report.created_at == datetime(2024, 1, 1, 9, 0)
    assert report.sequential_limit == 2
    outline = tree.get(11)
    assert outline.parent_id == 10
    assert outline.completed_at == datetime(2024, 1, 2, 10, 30)
    assert outline.reviewed_at == date(2024, 1, 3)
    assert outline.someday
    assert outline.body == "first draft\n"
    assert tree.project(2).status is ProjectStatus.ARCHIVED
    assert tree.project(1).color == "#ff0000"


def test_empty_document_is_empty_tree():
    assert len(SnapshotParser.parse("")) == 0


@pytest.mark.parametrize(
    "content",
    [
        "- just a list",
        "tasks: {id: 1}",
        "tasks:\n  - title: no id",
        "tasks:\n  - {id: 1, title: x, due_date: someday}",
        "tasks:\n  - {id: 1, title: x, sequential_limit: -1}",
        "tasks:\n  - {id: 1, title: x, sequential_limit: 1.7}",
        "tasks:\n  - {id: 1, title: x, sequential_limit: true}",
        "tasks:\n  - {id: 1, title: x, someday: 'false'}",
        "tasks:\n  - {id: 1, title: x, someday: 1}",
        "tasks:\n  - {id: 1.5, title: x}",
        "tasks:\n  - {id: 1, title: x}\n  - {id: 1, title: y}",
        "projects:\n  - {id: 1, title: P, status: deleted}",
        "tasks: [unclosed",
    ],
)
def test_malformed_snapshots_raise(content):
    with pytest.raises(SnapshotError):
        SnapshotParser.parse(content, source="bad.yaml")


def test_error_carries_source():
    with pytest.raises(SnapshotError) as excinfo:
        SnapshotParser.parse("tasks:\n  - title: no id", source="bad.yaml")
    assert excinfo.value.source == "bad.yaml"
    assert str(excinfo.value).startswith("bad.yaml: ")


def test_repository_round_trip(tmp_path: Path):
    tree = TaskTree(
        [
            Task(1, "Root", "a0", project_id=5, tags=frozenset({"x"}), due_date=date(2024, 5, 1)),
            Task(2, "Child", "a0", parent_id=1, completed_at=datetime(2024, 5, 2, 8, 0), sequential_limit=1),
        ],
        [Project(5, "Home", ProjectStatus.ACTIVE, "#00ff00")],
    )
    repo = FileSnapshotRepository(tmp_path / "data" / "snapshot.yaml")
    repo.save(tree)
    loaded = repo.load()
    assert sorted(loaded, key=lambda t: t.id) == sorted(tree, key=lambda t: t.id)
    assert loaded.projects == tree.projects
    assert not (tmp_path / "data" / "snapshot.yaml.tmp").exists()


def test_missing_file_loads_empty_tree(tmp_path: Path):
    assert len(FileSnapshotRepository(tmp_path / "absent.yaml").load()) == 0


def test_whole_number_values_are_accepted():
    tree = SnapshotParser.parse("tasks:\n  - {id: 1, title: x, sequential_limit: 2.0, someday: false}")
    task = tree.get(1)
    assert task.sequential_limit == 2
    assert task.someday is False
