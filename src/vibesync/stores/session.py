"""Per-view ownership of a project's stores."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from pydantic import ValidationError

from ..gateway import GatewayError, NotFound, RemoteGateway
from ..models import Project, VibesyncConfig
from .drag_controller import DragGestureController
from .errors import FetchError, StoreError
from .moodboard_store import MoodboardStore
from .task_board_store import TaskBoardStore

logger = logging.getLogger(__name__)


class ProjectSession:
    """Everything one open project view owns.

    Built when the view opens and closed when it goes away. Closing flips the
    stores' liveness flags first, so remote calls still in flight finish
    without touching state nobody is looking at.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        project_id: str,
        config: VibesyncConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.gateway = gateway
        self.project_id = project_id
        self.config = config or VibesyncConfig.default()
        collections = self.config.collections

        self.project: Project | None = None
        self.tasks = TaskBoardStore(gateway, collection=collections.tasks)
        self.moodboard = MoodboardStore(
            gateway,
            collection=collections.moodboard_items,
            scatter_size=self.config.moodboard.scatter_size,
            rng=rng,
        )
        self.drag = DragGestureController(self.tasks)

    @property
    def is_open(self) -> bool:
        return self.project is not None and self.tasks.is_alive

    async def open(self) -> ProjectSession:
        """Load the project, its tasks and its moodboard.

        Raises:
            FetchError: The project is missing or any load failed
        """
        collection = self.config.collections.projects
        try:
            document = await self.gateway.get(collection, self.project_id)
            project = Project.from_document(document)
        except NotFound as e:
            raise FetchError(collection, self.project_id, StoreError("project not found")) from e
        except GatewayError as e:
            raise FetchError(collection, self.project_id, e) from e
        except (KeyError, ValidationError) as e:
            raise FetchError(collection, self.project_id, e) from e

        results = await asyncio.gather(
            self.tasks.load(self.project_id),
            self.moodboard.load(self.project_id),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                # Nothing from a half-opened project stays visible
                self.tasks.clear()
                self.moodboard.clear()
                raise result

        self.project = project
        logger.info(
            "Opened project %s: %d task(s), %d moodboard item(s)",
            self.project_id,
            len(self.tasks),
            len(self.moodboard),
        )
        return self

    async def close(self) -> None:
        """Tear down both stores, then let in-flight calls run out."""
        self.drag.cancel()
        self.tasks.close()
        self.moodboard.close()
        await asyncio.gather(self.tasks.drain(), self.moodboard.drain())
        logger.debug("Closed project %s", self.project_id)

    async def __aenter__(self) -> ProjectSession:
        try:
            return await self.open()
        except StoreError:
            await self.close()
            raise

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
