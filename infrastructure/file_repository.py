import logging
from pathlib import Path

from core import TaskTree
from application.ports import TaskSnapshotSource
from infrastructure.snapshot_parser import SnapshotError, SnapshotParser

logger = logging.getLogger("taskcore.snapshot")


class FileSnapshotRepository(TaskSnapshotSource):
    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> TaskTree:
        """Load the snapshot; a missing file is an empty tree."""
        if not self.path.exists():
            logger.debug("snapshot %s does not exist; starting empty", self.path)
            return TaskTree()
        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SnapshotError(f"cannot read snapshot: {exc}", str(self.path)) from None
        return SnapshotParser.parse(content, source=str(self.path))

    def save(self, tree: TaskTree) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(SnapshotParser.to_yaml(tree), encoding="utf-8")
        tmp.replace(self.path)
        logger.debug("saved snapshot %s (%s tasks)", self.path, len(tree))
