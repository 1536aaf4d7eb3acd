"""Task board state with optimistic moves and creates."""

from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError

from ..gateway import GatewayError, RemoteGateway
from ..models import (
    STATUS_ORDER,
    CreateConfirmed,
    CreateRejected,
    ReconcileMessage,
    StatusConfirmed,
    StatusRejected,
    Task,
    TaskDraft,
    TaskStatus,
)
from .base import BaseStore
from .errors import CreateFailed, FetchError, InvalidMove, StoreError, SyncFailed

logger = logging.getLogger(__name__)


class TaskBoardStore(BaseStore):
    """In-memory task board for one project.

    Tasks live in three ordered lists, one per status column; a task's position
    is its index in its list. User gestures are applied here immediately, and
    remote outcomes come back as reconciliation messages that ``_apply`` commits
    one at a time.

    Reordering inside a column is local only: the remote store keeps status but
    no order, so a reload returns each column in store order.
    """

    def __init__(self, gateway: RemoteGateway, collection: str = "tasks") -> None:
        super().__init__(gateway)
        self.collection = collection
        self.project_id: str | None = None
        self._columns: dict[TaskStatus, list[Task]] = {status: [] for status in STATUS_ORDER}
        # Pending ids handed out before confirmation keep resolving afterwards
        self._aliases: dict[str, str] = {}
        # Resolved with the server id, or None if the create was rejected
        self._confirmations: dict[str, asyncio.Future[str | None]] = {}
        # Latest column-changing move per task; stale rollbacks are skipped
        self._status_moves: dict[str, int] = {}
        self._sequence = 0

    # Queries

    def column(self, status: TaskStatus | str) -> list[Task]:
        """Tasks in one column, top to bottom."""
        return list(self._columns[TaskStatus(status)])

    def columns(self) -> dict[TaskStatus, list[Task]]:
        """All columns in board order."""
        return {status: list(tasks) for status, tasks in self._columns.items()}

    def tasks(self) -> list[Task]:
        """Every task, column by column."""
        return [task for status in STATUS_ORDER for task in self._columns[status]]

    def get(self, task_id: str) -> Task | None:
        """Get a task by current or former (pending) id."""
        located = self._locate(self._resolve(task_id))
        if located is None:
            return None
        status, index = located
        return self._columns[status][index]

    def position_of(self, task_id: str) -> tuple[TaskStatus, int] | None:
        """Column and index of a task, or None if unknown."""
        return self._locate(self._resolve(task_id))

    def __len__(self) -> int:
        return sum(len(tasks) for tasks in self._columns.values())

    # Operations

    async def load(self, project_id: str) -> None:
        """Replace local state with the project's tasks from the remote store.

        Raises:
            FetchError: The query failed or returned unreadable documents
        """
        self._ensure_open()
        logger.debug("Loading tasks for project %s", project_id)
        try:
            documents = await self.gateway.query(self.collection, {"projectId": project_id})
            tasks = [Task.from_document(document) for document in documents]
        except (GatewayError, KeyError, ValidationError) as e:
            self.clear()
            raise FetchError(self.collection, project_id, e) from e

        if not self._alive:
            logger.debug("Dropping task load for %s: store closed", project_id)
            return

        self.clear()
        self.project_id = project_id
        for task in tasks:
            self._columns[task.status].append(task)
        logger.info("Loaded %d task(s) for project %s", len(tasks), project_id)

    async def create_task(self, draft: TaskDraft) -> Task:
        """Add a task to the end of todo, then confirm it remotely.

        The task is visible (with a pending id) as soon as this coroutine
        starts running, before the remote call completes.

        Raises:
            CreateFailed: The remote create failed; the task was removed again
            StoreClosed: The store has been torn down
        """
        self._ensure_open()
        project_id = self._require_project()
        task = Task.from_draft(draft, project_id)
        local_id = task.id
        self._columns[TaskStatus.TODO].append(task)
        self._confirmations[local_id] = asyncio.get_running_loop().create_future()
        logger.debug("Optimistic task %s: %s", local_id, task.title)

        try:
            server_id = await self.gateway.create(self.collection, task.to_document())
        except GatewayError as e:
            self._apply(CreateRejected(local_id))
            logger.warning("Task create failed: %s (%s)", task.title, e)
            raise CreateFailed(draft, e) from e
        except asyncio.CancelledError:
            self._apply(CreateRejected(local_id))
            logger.debug("Task create cancelled: %s", task.title)
            raise

        try:
            document = await self._read_back(self.collection, server_id)
        except asyncio.CancelledError:
            # Already stored remotely: keep it under the server id
            self._apply(CreateConfirmed(local_id, server_id))
            raise
        self._apply(CreateConfirmed(local_id, server_id, document))
        logger.info("Task created: %s (%s)", server_id, task.title)
        return self.get(server_id) or task.confirmed(server_id)

    def move_task(
        self,
        task_id: str,
        from_column: TaskStatus | str,
        to_column: TaskStatus | str,
        to_index: int,
        expected_index: int | None = None,
    ) -> asyncio.Task[SyncFailed | None] | None:
        """Move a task to ``to_index`` of ``to_column``, optimistically.

        Used both for reordering inside a column and for moving between
        columns. Local state changes before this returns. Only a change of
        column is sent to the remote store; the returned handle resolves to
        ``SyncFailed`` if that update failed and was rolled back, else None.
        Same-column moves return None.

        Must be called from the event loop. Calling it twice for one drop moves
        the task twice: callers deliver each drop at most once.

        Args:
            task_id: Task to move (pending ids are accepted)
            from_column: Column the caller believes the task is in
            to_column: Destination column
            to_index: Destination index, counted after removing the task
            expected_index: Optional source index to check against local state

        Raises:
            InvalidMove: A precondition failed; nothing changed
            StoreClosed: The store has been torn down
        """
        self._ensure_open()
        from_status = _as_status(from_column)
        to_status = _as_status(to_column)
        task_id = self._resolve(task_id)

        located = self._locate(task_id)
        if located is None:
            raise InvalidMove(f"Unknown task: {task_id}")
        current_status, index = located
        if current_status != from_status:
            raise InvalidMove(
                f"Task {task_id} is in {current_status.value}, not {from_status.value}"
            )
        if expected_index is not None and expected_index != index:
            raise InvalidMove(f"Task {task_id} is at index {index}, not {expected_index}")

        limit = len(self._columns[to_status]) - (1 if to_status == from_status else 0)
        if not 0 <= to_index <= limit:
            raise InvalidMove(f"Index {to_index} outside 0..{limit} for {to_status.value}")

        task = self._columns[from_status].pop(index)
        if from_status == to_status:
            self._columns[to_status].insert(to_index, task)
            logger.debug("Task reordered: %s (pos %d -> %d)", task_id, index, to_index)
            return None

        task = task.model_copy(update={"status": to_status})
        self._columns[to_status].insert(to_index, task)
        self._sequence += 1
        self._status_moves[task_id] = self._sequence
        logger.info("Task moved: %s (%s -> %s)", task_id, from_status.value, to_status.value)
        return self._spawn(
            self._sync_status(task_id, self._sequence, from_status, index, to_status)
        )

    def clear(self) -> None:
        """Forget the loaded project and every task."""
        for tasks in self._columns.values():
            tasks.clear()
        self._aliases.clear()
        self._status_moves.clear()
        self.project_id = None

    def close(self) -> None:
        """Tear down; moves waiting on a pending create are released."""
        super().close()
        for future in self._confirmations.values():
            if not future.done():
                future.set_result(None)
        self._confirmations.clear()

    # Reconciliation

    async def _sync_status(
        self,
        task_id: str,
        sequence: int,
        original_status: TaskStatus,
        original_index: int,
        attempted: TaskStatus,
    ) -> SyncFailed | None:
        remote_id: str | None = task_id
        confirmation = self._confirmations.get(task_id)
        if confirmation is not None:
            # Moved before its create was confirmed: wait for the real id
            remote_id = await confirmation
            if remote_id is None:
                logger.debug("Dropping status update for %s: create not confirmed", task_id)
                return None

        try:
            await self.gateway.update(self.collection, remote_id, {"status": attempted.value})
        except GatewayError as e:
            failure = SyncFailed(remote_id, attempted, original_status, e)
            if self._apply(StatusRejected(remote_id, sequence, original_status, original_index)):
                self._emit(failure)
            return failure

        self._apply(StatusConfirmed(remote_id, sequence))
        return None

    def _apply(self, message: ReconcileMessage) -> bool:
        """Commit one reconciliation message. Returns False if the store is closed."""
        if not self._alive:
            logger.debug("Store closed, dropping %s", message)
            return False
        if isinstance(message, CreateConfirmed):
            self._confirm_create(message)
        elif isinstance(message, CreateRejected):
            self._reject_create(message)
        elif isinstance(message, StatusConfirmed):
            logger.debug("Status of %s confirmed", message.task_id)
        elif isinstance(message, StatusRejected):
            self._reject_status(message)
        return True

    def _confirm_create(self, message: CreateConfirmed) -> None:
        located = self._locate(message.local_id)
        if located is not None:
            status, index = located
            created_at = message.document.get("createdAt") if message.document else None
            column = self._columns[status]
            column[index] = column[index].confirmed(message.server_id, created_at)

        self._aliases[message.local_id] = message.server_id
        if message.local_id in self._status_moves:
            self._status_moves[message.server_id] = self._status_moves.pop(message.local_id)
        future = self._confirmations.pop(message.local_id, None)
        if future is not None and not future.done():
            future.set_result(message.server_id)

    def _reject_create(self, message: CreateRejected) -> None:
        located = self._locate(message.local_id)
        if located is not None:
            status, index = located
            del self._columns[status][index]
        self._status_moves.pop(message.local_id, None)
        future = self._confirmations.pop(message.local_id, None)
        if future is not None and not future.done():
            future.set_result(None)

    def _reject_status(self, message: StatusRejected) -> None:
        if self._status_moves.get(message.task_id) != message.sequence:
            logger.warning(
                "Status update for %s failed but a later move superseded it", message.task_id
            )
            return

        located = self._locate(message.task_id)
        if located is None:
            return
        status, index = located
        task = self._columns[status].pop(index)
        task = task.model_copy(update={"status": message.original_status})
        target = self._columns[message.original_status]
        target.insert(min(message.original_index, len(target)), task)
        self._status_moves.pop(message.task_id, None)
        logger.warning(
            "Rolled back task %s to %s at %d",
            message.task_id,
            message.original_status.value,
            message.original_index,
        )

    # Helpers

    def _locate(self, task_id: str) -> tuple[TaskStatus, int] | None:
        for status, tasks in self._columns.items():
            for index, task in enumerate(tasks):
                if task.id == task_id:
                    return status, index
        return None

    def _resolve(self, task_id: str) -> str:
        return self._aliases.get(task_id, task_id)

    def _require_project(self) -> str:
        if self.project_id is None:
            raise StoreError("No project loaded")
        return self.project_id


def _as_status(value: TaskStatus | str) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError as e:
        raise InvalidMove(f"Unknown column: {value}") from e
