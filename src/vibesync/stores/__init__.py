"""Client-side state for the task board and moodboard."""

from .drag_controller import DragGestureController, DragSource, GestureInProgress, GestureState
from .errors import CreateFailed, FetchError, InvalidMove, StoreClosed, StoreError, SyncFailed
from .moodboard_store import MoodboardStore
from .session import ProjectSession
from .task_board_store import TaskBoardStore

__all__ = [
    "CreateFailed",
    "DragGestureController",
    "DragSource",
    "FetchError",
    "GestureInProgress",
    "GestureState",
    "InvalidMove",
    "MoodboardStore",
    "ProjectSession",
    "StoreClosed",
    "StoreError",
    "SyncFailed",
    "TaskBoardStore",
]
