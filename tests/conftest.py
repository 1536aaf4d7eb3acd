"""Shared fixtures for vibesync tests."""

import asyncio
from datetime import UTC, datetime

import pytest

from vibesync.gateway import InMemoryGateway

SERVER_TIME = datetime(2024, 5, 20, 9, 30, tzinfo=UTC)


async def settle(rounds: int = 10) -> None:
    """Let every runnable task advance to its next suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def gateway() -> InMemoryGateway:
    """In-memory gateway with one project and a fixed server clock."""
    gateway = InMemoryGateway(clock=lambda: SERVER_TIME)
    gateway.seed(
        "projects",
        "p1",
        title="Album artwork",
        description="Cover and liner notes",
        createdBy="u1",
        members=["u1", "u2"],
    )
    return gateway


def seed_task(
    gateway: InMemoryGateway, task_id: str, title: str, status: str = "todo", project: str = "p1"
) -> str:
    """Insert a task document directly into the gateway."""
    return gateway.seed(
        "tasks",
        task_id,
        projectId=project,
        title=title,
        description="",
        status=status,
        assignedTo="u1",
        dueDate=None,
        createdAt=SERVER_TIME,
    )
