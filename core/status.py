from enum import Enum
from typing import Final, Optional


class Status(Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"

    @classmethod
    def from_string(cls, value: str) -> Optional["Status"]:
        code = normalize_task_status(value)
        for status in cls:
            if status.value == code:
                return status
        return None


_ALIASES: Final[dict[str, str]] = {
    "OPEN": "ACTIVE",
    "TODO": "ACTIVE",
    "DONE": "COMPLETED",
    "COMPLETE": "COMPLETED",
}

# Words offered by filter autocompletion, in display order.
STATUS_WORDS: Final[tuple[str, ...]] = ("ACTIVE", "OPEN", "COMPLETED", "DONE")


def normalize_task_status(value: str) -> str:
    """Normalize status input to an uppercase status code.

    OPEN/TODO map to ACTIVE and DONE/COMPLETE map to COMPLETED; unknown words
    come back uppercased (spaces→underscores) for the caller to reject.
    """
    token = (value or "").strip().upper().replace(" ", "_")
    return _ALIASES.get(token, token)


def status_of(completed: bool) -> Status:
    return Status.COMPLETED if completed else Status.ACTIVE
