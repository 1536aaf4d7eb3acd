"""Lifecycle and signalling shared by the stores."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

from ..gateway import GatewayError, RemoteGateway
from .errors import StoreClosed, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[StoreError], None]


class BaseStore:
    """Owns the liveness flag, failure listeners and in-flight reconciliations.

    A store lives exactly as long as the view that created it. After ``close``
    no reconciliation may touch its state, and new mutations are refused.
    """

    def __init__(self, gateway: RemoteGateway) -> None:
        self.gateway = gateway
        self._alive = True
        self._listeners: list[Listener] = []
        self._in_flight: set[asyncio.Task[Any]] = set()

    @property
    def is_alive(self) -> bool:
        """False once the owning view has torn the store down."""
        return self._alive

    def add_listener(self, listener: Listener) -> None:
        """Register a callback for failures detected in the background."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def close(self) -> None:
        """Tear the store down. Late reconciliations become no-ops."""
        if not self._alive:
            return
        self._alive = False
        self._listeners.clear()
        logger.debug("%s closed with %d call(s) in flight", type(self).__name__, len(self._in_flight))

    async def drain(self) -> None:
        """Wait until every background reconciliation has finished."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    def _ensure_open(self) -> None:
        if not self._alive:
            raise StoreClosed(f"{type(self).__name__} is closed")

    def _spawn(self, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        """Run a reconciliation in the background and keep a handle to it."""
        task = asyncio.get_running_loop().create_task(coro)
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    def _emit(self, error: StoreError) -> None:
        """Deliver a background failure to every listener."""
        if not self._alive:
            return
        for listener in list(self._listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Store listener failed while handling %s", type(error).__name__)

    async def _read_back(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Fetch a just-created document; None if the read fails.

        The create already succeeded at this point, so a failed read keeps the
        local fields rather than undoing the insert.
        """
        try:
            return await self.gateway.get(collection, document_id)
        except GatewayError as e:
            logger.warning("Read-back of %s/%s failed: %s", collection, document_id, e)
            return None
