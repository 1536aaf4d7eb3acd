"""Data models."""

from .enums import STATUS_ORDER, ItemType, TaskStatus
from .identity import ConfirmedId, DocumentRef, PendingId
from .messages import (
    CreateConfirmed,
    CreateRejected,
    ReconcileMessage,
    StatusConfirmed,
    StatusRejected,
)
from .moodboard import MoodboardItem, MoodboardItemDraft, Position
from .project import Project
from .task import Task, TaskDraft
from .vibesync_config import CollectionsConfig, MoodboardConfig, VibesyncConfig

__all__ = [
    "STATUS_ORDER",
    "CollectionsConfig",
    "ConfirmedId",
    "CreateConfirmed",
    "CreateRejected",
    "DocumentRef",
    "ItemType",
    "MoodboardConfig",
    "MoodboardItem",
    "MoodboardItemDraft",
    "PendingId",
    "Position",
    "Project",
    "ReconcileMessage",
    "StatusConfirmed",
    "StatusRejected",
    "Task",
    "TaskDraft",
    "TaskStatus",
    "VibesyncConfig",
]
