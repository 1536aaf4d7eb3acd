"""Task domain model."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import TaskStatus
from .identity import ConfirmedId, DocumentRef, PendingId


class TaskDraft(BaseModel):
    """Values entered in the new-task form."""

    title: str = Field(..., min_length=1)
    description: str = ""
    assigned_to: str = ""
    due_date: date | None = None


class Task(BaseModel):
    """A card on the task board.

    Position within a column is not stored here; it is the task's index in the
    owning store's column list.
    """

    ref: DocumentRef
    project_id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    assigned_to: str = ""
    due_date: date | None = None
    created_at: datetime | None = None

    @property
    def id(self) -> str:
        """Current identifier, pending or confirmed."""
        return self.ref.value

    @property
    def is_pending(self) -> bool:
        return isinstance(self.ref, PendingId)

    @classmethod
    def from_draft(cls, draft: TaskDraft, project_id: str) -> "Task":
        """Build an optimistic task; new tasks always start in todo."""
        return cls(
            ref=PendingId(),
            project_id=project_id,
            title=draft.title,
            description=draft.description,
            status=TaskStatus.TODO,
            assigned_to=draft.assigned_to,
            due_date=draft.due_date,
        )

    def confirmed(self, server_id: str, created_at: datetime | None = None) -> "Task":
        """Copy of this task carrying the server-assigned identity."""
        update: dict[str, Any] = {"ref": ConfirmedId(value=server_id)}
        if created_at is not None:
            update["created_at"] = created_at
        return self.model_copy(update=update)

    def to_document(self) -> dict[str, Any]:
        """Fields as written to the remote store (identifier and createdAt excluded)."""
        return {
            "projectId": self.project_id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "assignedTo": self.assigned_to,
            "dueDate": self.due_date,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Task":
        """Create Task from a remote document (must include its ``id``)."""
        return cls(
            ref=ConfirmedId(value=document["id"]),
            project_id=document["projectId"],
            title=document.get("title", ""),
            description=document.get("description", ""),
            status=TaskStatus(document.get("status", TaskStatus.TODO.value)),
            assigned_to=document.get("assignedTo", ""),
            due_date=_as_date(document.get("dueDate")),
            created_at=document.get("createdAt"),
        )


def _as_date(value: date | datetime | str | None) -> date | None:
    """Normalize a stored due date (timestamps come back as datetimes)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])
