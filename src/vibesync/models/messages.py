"""Reconciliation messages.

Each remote call ends in exactly one of these, handed to the owning store's
apply step. A message names the single entry it affects.
"""

from dataclasses import dataclass
from typing import Any

from .enums import TaskStatus


@dataclass(frozen=True)
class CreateConfirmed:
    """The remote store accepted an optimistic insert."""

    local_id: str  # PendingId value of the optimistic entry
    server_id: str
    document: dict[str, Any] | None = None  # Read-back document, None if unavailable


@dataclass(frozen=True)
class CreateRejected:
    """The remote store refused (or never received) an optimistic insert."""

    local_id: str


@dataclass(frozen=True)
class StatusConfirmed:
    """A status change reached the remote store."""

    task_id: str
    sequence: int  # Move sequence number the update belonged to


@dataclass(frozen=True)
class StatusRejected:
    """A status change failed remotely and must be rolled back."""

    task_id: str
    sequence: int
    original_status: TaskStatus
    original_index: int


ReconcileMessage = CreateConfirmed | CreateRejected | StatusConfirmed | StatusRejected
