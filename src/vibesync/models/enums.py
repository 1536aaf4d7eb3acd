"""Enumerations shared by the board models."""

from enum import Enum


class TaskStatus(str, Enum):
    """Status column a task sits in."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"

    @property
    def heading(self) -> str:
        """Column heading for display."""
        return self.value.replace("-", " ").title()


class ItemType(str, Enum):
    """Kind of content pinned to the moodboard."""

    IMAGE = "image"
    LINK = "link"


# Column order on the board, left to right
STATUS_ORDER: tuple[TaskStatus, ...] = (
    TaskStatus.TODO,
    TaskStatus.IN_PROGRESS,
    TaskStatus.DONE,
)
