"""In-memory RemoteGateway for tests and offline use."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..utils import now_utc
from .errors import GatewayError, NotFound, RemoteUnavailable

logger = logging.getLogger(__name__)

OPERATIONS = ("create", "get", "query", "update")


@dataclass(frozen=True)
class GatewayCall:
    """One recorded gateway call."""

    operation: str
    collection: str
    document_id: str | None = None
    fields: dict[str, Any] | None = None


class InMemoryGateway:
    """Dict-backed document store with scripted failures.

    Every call suspends at least once, like a network round trip, so optimistic
    local state is observable while a call is in flight. Tests can additionally:
    - queue failures per operation with ``fail_next``
    - hold an operation open with ``hold`` until ``release`` is called
    - inspect every call through ``calls`` / ``calls_to``
    """

    def __init__(self, clock: Callable[[], datetime] = now_utc) -> None:
        self._clock = clock
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._failures: dict[str, deque[GatewayError]] = defaultdict(deque)
        self._gates: dict[str, asyncio.Event] = {}
        self._next_id = 1
        self.calls: list[GatewayCall] = []

    # Test controls

    def seed(self, collection: str, document_id: str | None = None, **fields: Any) -> str:
        """Insert a document directly, bypassing call recording."""
        if document_id is None:
            document_id = self._allocate_id()
        self._collections[collection][document_id] = dict(fields)
        return document_id

    def fail_next(self, operation: str, error: GatewayError | None = None) -> None:
        """Make the next call of ``operation`` raise ``error``."""
        if operation not in OPERATIONS:
            raise ValueError(f"Unknown operation: {operation}")
        self._failures[operation].append(error or RemoteUnavailable("injected failure"))

    def hold(self, operation: str) -> None:
        """Suspend calls of ``operation`` until ``release`` is called."""
        self._gates.setdefault(operation, asyncio.Event())

    def release(self, operation: str) -> None:
        """Let held calls of ``operation`` continue."""
        gate = self._gates.pop(operation, None)
        if gate is not None:
            gate.set()

    def calls_to(self, operation: str) -> list[GatewayCall]:
        """Recorded calls of one operation, in call order."""
        return [call for call in self.calls if call.operation == operation]

    def documents(self, collection: str) -> dict[str, dict[str, Any]]:
        """Snapshot of a collection keyed by id."""
        return copy.deepcopy(self._collections[collection])

    # RemoteGateway

    async def create(self, collection: str, fields: dict[str, Any]) -> str:
        await self._enter(GatewayCall("create", collection, fields=dict(fields)))
        document_id = self._allocate_id()
        stored = copy.deepcopy(fields)
        stored["createdAt"] = self._clock()
        self._collections[collection][document_id] = stored
        logger.debug("Created %s/%s", collection, document_id)
        return document_id

    async def get(self, collection: str, document_id: str) -> dict[str, Any]:
        await self._enter(GatewayCall("get", collection, document_id))
        stored = self._collections[collection].get(document_id)
        if stored is None:
            raise NotFound(collection, document_id)
        return self._export(document_id, stored)

    async def query(self, collection: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        await self._enter(GatewayCall("query", collection, fields=dict(filters)))
        return [
            self._export(document_id, stored)
            for document_id, stored in self._collections[collection].items()
            if all(stored.get(key) == value for key, value in filters.items())
        ]

    async def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> bool:
        await self._enter(GatewayCall("update", collection, document_id, dict(fields)))
        stored = self._collections[collection].get(document_id)
        if stored is None:
            raise NotFound(collection, document_id)
        stored.update(copy.deepcopy(fields))
        return True

    async def _enter(self, call: GatewayCall) -> None:
        """Record the call, yield to the loop, then apply any scripted outcome."""
        self.calls.append(call)
        await asyncio.sleep(0)
        gate = self._gates.get(call.operation)
        if gate is not None:
            await gate.wait()
        failures = self._failures[call.operation]
        if failures:
            raise failures.popleft()

    def _allocate_id(self) -> str:
        document_id = f"doc-{self._next_id}"
        self._next_id += 1
        return document_id

    @staticmethod
    def _export(document_id: str, stored: dict[str, Any]) -> dict[str, Any]:
        document = copy.deepcopy(stored)
        document["id"] = document_id
        return document
