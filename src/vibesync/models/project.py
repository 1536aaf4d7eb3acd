"""Project model."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator


class Project(BaseModel):
    """A shared creative project. Created and listed outside this package."""

    id: str
    title: str
    description: str = ""
    created_by: str
    members: list[str] = Field(default_factory=list)
    created_at: datetime | None = None

    @model_validator(mode="after")
    def creator_is_member(self) -> "Project":
        """The creator always belongs to the member set."""
        if self.created_by not in self.members:
            self.members.insert(0, self.created_by)
        return self

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Project":
        return cls(
            id=document["id"],
            title=document.get("title", ""),
            description=document.get("description", ""),
            created_by=document["createdBy"],
            members=list(document.get("members") or []),
            created_at=document.get("createdAt"),
        )
