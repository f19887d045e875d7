from typing import Protocol

from core import TaskTree


class TaskSnapshotSource(Protocol):
    def load(self) -> TaskTree:
        ...

    def save(self, tree: TaskTree) -> None:
        ...
