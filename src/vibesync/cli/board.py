"""Board commands: show, add tasks and items, move tasks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date

from pydantic import ValidationError

from ..config import ConfigService, Settings
from ..gateway import FirestoreGateway, GatewayError, RemoteGateway
from ..models import ItemType, MoodboardItemDraft, TaskDraft, TaskStatus
from ..stores import ProjectSession, StoreError
from . import output

logger = logging.getLogger(__name__)

SessionAction = Callable[[ProjectSession], Awaitable[int]]


def run_board(settings: Settings, project_id: str) -> int:
    """Print a project's task board and moodboard."""

    async def show(session: ProjectSession) -> int:
        if session.project is not None:
            output.header(session.project.title)
        output.print_board(session.tasks.columns())
        output.print_moodboard(session.moodboard.items())
        return 0

    return _run(settings, project_id, show)


def run_add_task(
    settings: Settings,
    project_id: str,
    title: str,
    description: str = "",
    due: date | None = None,
    assignee: str = "",
) -> int:
    """Create a task in the todo column."""

    async def add(session: ProjectSession) -> int:
        draft = TaskDraft(title=title, description=description, assigned_to=assignee, due_date=due)
        task = await session.tasks.create_task(draft)
        output.success(f"Created task {task.id}: {task.title}")
        return 0

    return _run(settings, project_id, add)


def run_move(
    settings: Settings,
    project_id: str,
    task_id: str,
    status: TaskStatus,
    index: int | None = None,
) -> int:
    """Move a task as a drag-and-drop gesture would, then wait for the save."""

    async def move(session: ProjectSession) -> int:
        source = session.drag.pick_up(task_id)
        destination = len(session.tasks.column(status))
        if status == source.column:
            destination -= 1
        if index is not None:
            destination = index

        handle = session.drag.drop(status, destination)
        if handle is None and status == source.column and destination == source.index:
            output.info(f"Task {task_id} is already there")
            return 0
        if handle is not None:
            failure = await handle
            if failure is not None:
                output.error(str(failure))
                return 1
        output.success(f"Moved {task_id} to {status.value} at {destination}")
        return 0

    return _run(settings, project_id, move)


def run_add_item(
    settings: Settings,
    project_id: str,
    item_type: ItemType,
    content: str,
    created_by: str = "",
) -> int:
    """Pin an image or link to the moodboard."""

    async def add(session: ProjectSession) -> int:
        draft = MoodboardItemDraft(type=item_type, content=content, created_by=created_by)
        item = await session.moodboard.add_item(draft)
        output.success(f"Added {output.format_item(item)}")
        return 0

    return _run(settings, project_id, add)


def _run(settings: Settings, project_id: str, action: SessionAction) -> int:
    """Open a session against Firestore, run one action, and map errors to exit codes."""
    config_service = ConfigService(settings.project_root)
    config_service.get_config()
    if config_service.has_config_error:
        output.info(f"Using default configuration ({config_service.config_error})")

    try:
        gateway = FirestoreGateway.from_settings(settings)
    except GatewayError as e:
        output.error(str(e))
        return 1

    async def main() -> int:
        async with gateway:
            return await run_session(gateway, project_id, action, config_service)

    return asyncio.run(main())


async def run_session(
    gateway: RemoteGateway,
    project_id: str,
    action: SessionAction,
    config_service: ConfigService | None = None,
) -> int:
    """Run ``action`` inside an open session; store errors become exit code 1."""
    config = config_service.get_config() if config_service else None
    try:
        async with ProjectSession(gateway, project_id, config=config) as session:
            return await action(session)
    except StoreError as e:
        logger.info("Command failed: %s", e)
        output.error(str(e))
        return 1
    except ValidationError as e:
        output.error(f"Invalid input: {e.errors()[0]['msg']}")
        return 1
