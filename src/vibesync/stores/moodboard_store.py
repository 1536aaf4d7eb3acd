"""Moodboard state with optimistic item creation."""

from __future__ import annotations

import asyncio
import logging
import random

from pydantic import ValidationError

from ..gateway import GatewayError, RemoteGateway
from ..models import (
    ConfirmedId,
    CreateConfirmed,
    CreateRejected,
    MoodboardItem,
    MoodboardItemDraft,
    PendingId,
    Position,
    ReconcileMessage,
)
from .base import BaseStore
from .errors import CreateFailed, FetchError, StoreError

logger = logging.getLogger(__name__)


class MoodboardStore(BaseStore):
    """In-memory moodboard for one project.

    Items are append-only. New items are scattered at a random point instead of
    where the user would drop them.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        collection: str = "moodboardItems",
        scatter_size: float = 500.0,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(gateway)
        self.collection = collection
        self.scatter_size = scatter_size
        self.project_id: str | None = None
        self._rng = rng or random.Random()
        self._items: list[MoodboardItem] = []

    def items(self) -> list[MoodboardItem]:
        """Items in creation order."""
        return list(self._items)

    def get(self, item_id: str) -> MoodboardItem | None:
        index = self._index_of(item_id)
        return None if index is None else self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        """Forget the loaded project and its items."""
        self._items.clear()
        self.project_id = None

    async def load(self, project_id: str) -> None:
        """Replace local state with the project's items.

        Raises:
            FetchError: The query failed or returned unreadable documents
        """
        self._ensure_open()
        try:
            documents = await self.gateway.query(self.collection, {"projectId": project_id})
            items = [MoodboardItem.from_document(document) for document in documents]
        except (GatewayError, KeyError, ValidationError) as e:
            self.clear()
            raise FetchError(self.collection, project_id, e) from e

        if not self._alive:
            logger.debug("Dropping moodboard load for %s: store closed", project_id)
            return

        self.project_id = project_id
        self._items = items
        logger.info("Loaded %d moodboard item(s) for project %s", len(items), project_id)

    async def add_item(self, draft: MoodboardItemDraft) -> MoodboardItem:
        """Pin a new item at a random spot, then confirm it remotely.

        Raises:
            CreateFailed: The remote create failed; the item was removed again
            StoreClosed: The store has been torn down
        """
        self._ensure_open()
        if self.project_id is None:
            raise StoreError("No project loaded")

        item = MoodboardItem(
            ref=PendingId(),
            project_id=self.project_id,
            type=draft.type,
            content=draft.content,
            position=self._scatter(),
            created_by=draft.created_by,
        )
        local_id = item.id
        self._items.append(item)

        try:
            server_id = await self.gateway.create(self.collection, item.to_document())
        except GatewayError as e:
            self._apply(CreateRejected(local_id))
            logger.warning("Moodboard item create failed: %s (%s)", draft.content, e)
            raise CreateFailed(draft, e) from e
        except asyncio.CancelledError:
            self._apply(CreateRejected(local_id))
            logger.debug("Moodboard item create cancelled: %s", draft.content)
            raise

        try:
            document = await self._read_back(self.collection, server_id)
        except asyncio.CancelledError:
            # Already stored remotely: keep it under the server id
            self._apply(CreateConfirmed(local_id, server_id))
            raise
        self._apply(CreateConfirmed(local_id, server_id, document))
        logger.info("Moodboard item created: %s (%s)", server_id, item.type.value)
        return self.get(server_id) or item.model_copy(update={"ref": ConfirmedId(value=server_id)})

    def _scatter(self) -> Position:
        return Position(
            x=self._rng.random() * self.scatter_size,
            y=self._rng.random() * self.scatter_size,
        )

    def _apply(self, message: ReconcileMessage) -> bool:
        """Commit one reconciliation message. Returns False if the store is closed."""
        if not self._alive:
            logger.debug("Store closed, dropping %s", message)
            return False
        if isinstance(message, CreateConfirmed):
            index = self._index_of(message.local_id)
            if index is not None:
                self._items[index] = self._confirmed(self._items[index], message)
        elif isinstance(message, CreateRejected):
            index = self._index_of(message.local_id)
            if index is not None:
                del self._items[index]
        return True

    @staticmethod
    def _confirmed(item: MoodboardItem, message: CreateConfirmed) -> MoodboardItem:
        """Adopt the stored document when it was read back, else just the id."""
        if message.document is not None:
            try:
                return MoodboardItem.from_document(message.document)
            except (KeyError, ValidationError) as e:
                logger.warning("Unreadable read-back for %s: %s", message.server_id, e)
        return item.model_copy(update={"ref": ConfirmedId(value=message.server_id)})

    def _index_of(self, item_id: str) -> int | None:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        return None
