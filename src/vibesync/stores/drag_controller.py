"""Drag-and-drop gesture state machine for the task board."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from ..models import TaskStatus
from .errors import InvalidMove, StoreError, SyncFailed
from .task_board_store import TaskBoardStore

logger = logging.getLogger(__name__)


class GestureState(str, Enum):
    """Phase of the current gesture."""

    IDLE = "idle"
    DRAGGING = "dragging"


class GestureInProgress(StoreError):
    """A second pick-up arrived while a gesture was active."""

    pass


@dataclass(frozen=True)
class DragSource:
    """Where the dragged task was picked up."""

    task_id: str
    column: TaskStatus
    index: int


class DragGestureController:
    """Turns one pick-up / hover / drop sequence into at most one store move.

    Only one gesture is active at a time. A committed drop is handed to the
    store exactly once and the controller returns to idle without waiting for
    the remote outcome.
    """

    def __init__(self, store: TaskBoardStore) -> None:
        self.store = store
        self._state = GestureState.IDLE
        self._source: DragSource | None = None
        self._hover: tuple[TaskStatus, int] | None = None

    @property
    def state(self) -> GestureState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state is GestureState.DRAGGING

    @property
    def source(self) -> DragSource | None:
        return self._source

    @property
    def hover_target(self) -> tuple[TaskStatus, int] | None:
        """Last hovered slot, for drop-target highlighting only."""
        return self._hover

    def pick_up(self, task_id: str) -> DragSource:
        """Start dragging a task.

        Raises:
            GestureInProgress: Another gesture is active
            InvalidMove: The task is not on the board
        """
        if self.is_dragging and self._source is not None:
            raise GestureInProgress(f"Already dragging {self._source.task_id}")

        position = self.store.position_of(task_id)
        if position is None:
            raise InvalidMove(f"Unknown task: {task_id}")

        column, index = position
        self._source = DragSource(task_id=task_id, column=column, index=index)
        self._state = GestureState.DRAGGING
        logger.debug("Picked up %s from %s[%d]", task_id, column.value, index)
        return self._source

    def hover(self, column: TaskStatus | str | None, index: int | None = None) -> None:
        """Track the slot under the pointer. Never touches the store."""
        if not self.is_dragging:
            return
        status = _valid_column(column)
        self._hover = (status, index) if status is not None and index is not None else None

    def drop(
        self, column: TaskStatus | str | None, index: int | None = None
    ) -> asyncio.Task[SyncFailed | None] | None:
        """Finish the gesture.

        Dropping outside any column, or back onto the source slot, cancels.
        Otherwise the move is sent to the store once and the controller goes
        idle whatever the store does with it.

        Returns:
            The store's sync handle for a column change, else None

        Raises:
            InvalidMove: The store rejected the move (the gesture is still over)
        """
        if not self.is_dragging or self._source is None:
            logger.debug("Drop ignored: no gesture in progress")
            return None

        source = self._source
        destination = _valid_column(column)
        if destination is None or index is None:
            logger.debug("Drop outside the board; cancelling %s", source.task_id)
            self.cancel()
            return None

        # Reconciliations landing mid-drag can shift the task within its column
        from_index = source.index
        current = self.store.position_of(source.task_id)
        if current is not None and current[0] == source.column:
            from_index = current[1]

        if destination == source.column and index == from_index:
            logger.debug("Dropped %s where it started; cancelling", source.task_id)
            self.cancel()
            return None

        try:
            return self.store.move_task(
                source.task_id,
                source.column,
                destination,
                index,
                expected_index=from_index,
            )
        finally:
            self._reset()

    def cancel(self) -> None:
        """Abandon the gesture without changing anything."""
        self._reset()

    def _reset(self) -> None:
        self._state = GestureState.IDLE
        self._source = None
        self._hover = None


def _valid_column(column: TaskStatus | str | None) -> TaskStatus | None:
    if column is None:
        return None
    try:
        return TaskStatus(column)
    except ValueError:
        return None
