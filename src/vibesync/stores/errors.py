"""Errors surfaced by the stores to the view layer.

Gateway failures never leave a store as-is; they are translated into one of
these and chained to the original error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models import MoodboardItemDraft, TaskDraft, TaskStatus


class StoreError(Exception):
    """Base exception for store failures."""

    pass


class FetchError(StoreError):
    """Initial load failed; the store holds no data."""

    def __init__(self, collection: str, project_id: str, cause: BaseException | None = None):
        reason = f": {cause}" if cause else ""
        super().__init__(f"Could not load {collection} for project {project_id}{reason}")
        self.collection = collection
        self.project_id = project_id
        self.cause = cause


class CreateFailed(StoreError):
    """An optimistic create was not confirmed and has been removed.

    ``draft`` holds the values the user entered so the form can be shown again.
    """

    def __init__(self, draft: TaskDraft | MoodboardItemDraft, cause: BaseException | None = None):
        reason = f": {cause}" if cause else ""
        super().__init__(f"Create was not confirmed{reason}")
        self.draft = draft
        self.cause = cause


class SyncFailed(StoreError):
    """A status change could not be saved remotely and was rolled back."""

    def __init__(
        self,
        task_id: str,
        attempted_status: TaskStatus,
        original_status: TaskStatus,
        cause: BaseException | None = None,
    ):
        super().__init__(
            f"Could not move task {task_id} to {attempted_status.value}; "
            f"kept in {original_status.value}"
        )
        self.task_id = task_id
        self.attempted_status = attempted_status
        self.original_status = original_status
        self.cause = cause


class InvalidMove(StoreError, ValueError):
    """A move request broke its preconditions; nothing was changed."""

    pass


class StoreClosed(StoreError):
    """The store was torn down with its view."""

    pass
