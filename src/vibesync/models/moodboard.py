"""Moodboard item model."""

from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel

from .enums import ItemType
from .identity import ConfirmedId, DocumentRef


def _require_content(value: str) -> str:
    if not value.strip():
        raise ValueError("content cannot be empty")
    return value


Content = Annotated[str, AfterValidator(_require_content)]


class Position(BaseModel):
    """Point on the moodboard. Unbounded: items may overlap or sit off-screen."""

    model_config = {"frozen": True}

    x: float
    y: float


class MoodboardItemDraft(BaseModel):
    """Values entered in the add-item form."""

    type: ItemType = ItemType.IMAGE
    content: Content
    created_by: str = ""


class MoodboardItem(BaseModel):
    """An image or link pinned to the moodboard."""

    ref: DocumentRef
    project_id: str
    type: ItemType
    content: Content
    position: Position
    created_by: str = ""
    created_at: datetime | None = None

    @property
    def id(self) -> str:
        """Current identifier, pending or confirmed."""
        return self.ref.value

    @property
    def is_pending(self) -> bool:
        return self.ref.kind == "pending"

    def to_document(self) -> dict[str, Any]:
        """Fields as written to the remote store (identifier and createdAt excluded)."""
        return {
            "projectId": self.project_id,
            "type": self.type.value,
            "content": self.content,
            "position": {"x": self.position.x, "y": self.position.y},
            "createdBy": self.created_by,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "MoodboardItem":
        """Create MoodboardItem from a remote document (must include its ``id``)."""
        position = document.get("position") or {}
        return cls(
            ref=ConfirmedId(value=document["id"]),
            project_id=document["projectId"],
            type=ItemType(document.get("type", ItemType.IMAGE.value)),
            content=document.get("content", ""),
            position=Position(x=position.get("x", 0.0), y=position.get("y", 0.0)),
            created_by=document.get("createdBy", ""),
            created_at=document.get("createdAt"),
        )
