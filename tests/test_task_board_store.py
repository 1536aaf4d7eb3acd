"""Tests for TaskBoardStore."""

import asyncio
from datetime import date

import pytest

from conftest import SERVER_TIME, seed_task, settle
from vibesync.gateway import InMemoryGateway, NotFound
from vibesync.models import TaskDraft, TaskStatus
from vibesync.stores import (
    CreateFailed,
    FetchError,
    InvalidMove,
    StoreClosed,
    StoreError,
    SyncFailed,
    TaskBoardStore,
)


def snapshot(store: TaskBoardStore) -> dict[str, list[tuple[str, str]]]:
    """Column contents as (id, status) pairs."""
    return {
        status.value: [(task.id, task.status.value) for task in tasks]
        for status, tasks in store.columns().items()
    }


def ids(store: TaskBoardStore, status: str) -> list[str]:
    return [task.id for task in store.column(status)]


@pytest.fixture
def board_gateway(gateway: InMemoryGateway) -> InMemoryGateway:
    """Gateway holding a small board for project p1 and one foreign task."""
    seed_task(gateway, "t1", "Moodboard research")
    seed_task(gateway, "t2", "Pick palette")
    seed_task(gateway, "t3", "Typography", status="in-progress")
    seed_task(gateway, "t4", "Kickoff", status="done")
    seed_task(gateway, "other", "Other project", project="p2")
    return gateway


class TestTaskBoardStoreLoad:
    """Tests for loading tasks."""

    def test_load_groups_by_status(self, board_gateway: InMemoryGateway):
        """load puts each task in its status column, keeping store order."""
        store = TaskBoardStore(board_gateway)
        asyncio.run(store.load("p1"))

        assert ids(store, "todo") == ["t1", "t2"]
        assert ids(store, "in-progress") == ["t3"]
        assert ids(store, "done") == ["t4"]
        assert store.project_id == "p1"

    def test_load_only_returns_project_tasks(self, board_gateway: InMemoryGateway):
        """Tasks of other projects are not loaded."""
        store = TaskBoardStore(board_gateway)
        asyncio.run(store.load("p1"))

        assert store.get("other") is None
        assert len(store) == 4

    def test_load_converts_documents(self, board_gateway: InMemoryGateway):
        """Loaded tasks carry confirmed ids and typed fields."""
        store = TaskBoardStore(board_gateway)
        asyncio.run(store.load("p1"))

        task = store.get("t3")
        assert task is not None
        assert not task.is_pending
        assert task.status is TaskStatus.IN_PROGRESS
        assert task.created_at == SERVER_TIME

    def test_load_failure_raises_fetch_error(self, board_gateway: InMemoryGateway):
        """A failed query raises FetchError and holds no data."""
        store = TaskBoardStore(board_gateway)
        asyncio.run(store.load("p1"))
        board_gateway.fail_next("query")

        with pytest.raises(FetchError) as exc_info:
            asyncio.run(store.load("p1"))

        assert exc_info.value.project_id == "p1"
        assert len(store) == 0
        assert store.project_id is None

    def test_load_malformed_document_raises_fetch_error(self, gateway: InMemoryGateway):
        """A document with an unknown status is a fetch failure, not a crash."""
        gateway.seed("tasks", "bad", projectId="p1", title="Bad", status="blocked")
        store = TaskBoardStore(gateway)

        with pytest.raises(FetchError):
            asyncio.run(store.load("p1"))
        assert len(store) == 0

    def test_load_can_be_retried(self, board_gateway: InMemoryGateway):
        """After a failed load, a fresh load succeeds."""
        store = TaskBoardStore(board_gateway)
        board_gateway.fail_next("query")

        with pytest.raises(FetchError):
            asyncio.run(store.load("p1"))
        asyncio.run(store.load("p1"))

        assert len(store) == 4


class TestTaskBoardStoreCreate:
    """Tests for optimistic task creation."""

    def test_task_visible_before_confirmation(self, gateway: InMemoryGateway):
        """The new task is in todo with a pending id while the create is in flight."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            gateway.hold("create")
            pending = asyncio.create_task(store.create_task(TaskDraft(title="Sketch logo")))
            await settle()

            todo = store.column("todo")
            assert len(todo) == 1
            assert todo[0].is_pending
            assert todo[0].id.startswith("local-")
            assert todo[0].title == "Sketch logo"

            gateway.release("create")
            return await pending

        task = asyncio.run(scenario())
        assert not task.is_pending

    def test_confirmation_swaps_to_server_id(self, gateway: InMemoryGateway):
        """The confirmed task carries the server id and server createdAt."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            return await store.create_task(
                TaskDraft(title="Sketch logo", due_date=date(2024, 6, 1), assigned_to="u2")
            )

        task = asyncio.run(scenario())

        assert task.id in gateway.documents("tasks")
        assert ids(store, "todo") == [task.id]
        assert task.created_at == SERVER_TIME
        assert task.due_date == date(2024, 6, 1)
        stored = gateway.documents("tasks")[task.id]
        assert stored["status"] == "todo"
        assert stored["projectId"] == "p1"
        assert stored["assignedTo"] == "u2"

    def test_status_forced_to_todo(self, gateway: InMemoryGateway):
        """New tasks always start in todo."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            return await store.create_task(TaskDraft(title="Anything"))

        task = asyncio.run(scenario())
        assert task.status is TaskStatus.TODO
        assert gateway.calls_to("create")[0].fields["status"] == "todo"

    def test_sequential_creates_keep_insertion_order(self, gateway: InMemoryGateway):
        """todo lists created tasks in the order they were created."""
        store = TaskBoardStore(gateway)
        titles = ["First", "Second", "Third", "Fourth"]

        async def scenario():
            await store.load("p1")
            for title in titles:
                await store.create_task(TaskDraft(title=title))

        asyncio.run(scenario())
        assert [task.title for task in store.column("todo")] == titles

    def test_concurrent_creates_keep_insertion_order(self, gateway: InMemoryGateway):
        """Order follows the gestures even when confirmations overlap."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            gateway.hold("create")
            creates = [
                asyncio.create_task(store.create_task(TaskDraft(title=title)))
                for title in ("A", "B", "C")
            ]
            await settle()
            gateway.release("create")
            await asyncio.gather(*creates)

        asyncio.run(scenario())
        assert [task.title for task in store.column("todo")] == ["A", "B", "C"]
        assert not any(task.is_pending for task in store.tasks())

    def test_failed_create_removes_entry(self, gateway: InMemoryGateway):
        """A rejected create is removed and surfaces the entered values."""
        store = TaskBoardStore(gateway)
        draft = TaskDraft(title="Sketch logo", description="Three options")

        async def scenario():
            await store.load("p1")
            gateway.fail_next("create")
            await store.create_task(draft)

        with pytest.raises(CreateFailed) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.draft == draft
        assert len(store) == 0

    def test_failed_then_successful_create_leaves_one_task(self, gateway: InMemoryGateway):
        """Only the confirmed task remains after a failure followed by a success."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            gateway.fail_next("create")
            with pytest.raises(CreateFailed):
                await store.create_task(TaskDraft(title="First try"))
            return await store.create_task(TaskDraft(title="Second try"))

        task = asyncio.run(scenario())

        assert len(store) == 1
        assert ids(store, "todo") == [task.id]

    def test_failed_read_back_keeps_task(self, gateway: InMemoryGateway):
        """A confirmed create stays even if reading it back fails."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            gateway.fail_next("get", NotFound("tasks", "?"))
            return await store.create_task(TaskDraft(title="Sketch logo"))

        task = asyncio.run(scenario())

        assert not task.is_pending
        assert task.created_at is None
        assert ids(store, "todo") == [task.id]

    def test_create_without_project_raises(self, gateway: InMemoryGateway):
        """Creating before load is an error."""
        store = TaskBoardStore(gateway)

        with pytest.raises(StoreError):
            asyncio.run(store.create_task(TaskDraft(title="Too early")))


class TestTaskBoardStoreMove:
    """Tests for moving tasks within and between columns."""

    def test_reorder_within_column_is_local_only(self, board_gateway: InMemoryGateway):
        """Same-column moves change order without any remote update."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            handle = store.move_task("t1", "todo", "todo", 1)
            await store.drain()
            return handle

        handle = asyncio.run(scenario())

        assert handle is None
        assert ids(store, "todo") == ["t2", "t1"]
        assert board_gateway.calls_to("update") == []

    def test_cross_column_move_updates_remote_once(self, board_gateway: InMemoryGateway):
        """A column change sends exactly one status update."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            handle = store.move_task("t1", "todo", "done", 0)
            return await handle

        result = asyncio.run(scenario())

        assert result is None
        updates = board_gateway.calls_to("update")
        assert len(updates) == 1
        assert updates[0].document_id == "t1"
        assert updates[0].fields == {"status": "done"}
        assert ids(store, "done") == ["t1", "t4"]
        assert store.get("t1").status is TaskStatus.DONE
        assert board_gateway.documents("tasks")["t1"]["status"] == "done"

    def test_cross_column_move_updates_remote_once_on_failure(
        self, board_gateway: InMemoryGateway
    ):
        """A failing column change is still exactly one update call, never retried."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            board_gateway.fail_next("update")
            return await store.move_task("t1", "todo", "done", 0)

        result = asyncio.run(scenario())

        assert isinstance(result, SyncFailed)
        assert len(board_gateway.calls_to("update")) == 1

    def test_move_applies_before_remote_answer(self, board_gateway: InMemoryGateway):
        """Local state changes synchronously, before the update completes."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            board_gateway.hold("update")
            handle = store.move_task("t2", "todo", "in-progress", 1)
            assert ids(store, "in-progress") == ["t3", "t2"]
            assert ids(store, "todo") == ["t1"]
            board_gateway.release("update")
            await handle

        asyncio.run(scenario())

    def test_failure_restores_previous_state(self, board_gateway: InMemoryGateway):
        """A rejected status update restores columns and status exactly."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            before = snapshot(store)
            board_gateway.fail_next("update")
            failure = await store.move_task("t2", "todo", "in-progress", 0)
            return before, failure

        before, failure = asyncio.run(scenario())

        assert snapshot(store) == before
        assert failure.task_id == "t2"
        assert failure.attempted_status is TaskStatus.IN_PROGRESS
        assert failure.original_status is TaskStatus.TODO

    def test_sketch_logo_round_trip(self, gateway: InMemoryGateway):
        """Create, drag to in-progress, remote failure: back in todo."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            t1 = await store.create_task(
                TaskDraft(title="Sketch logo", due_date=date(2024, 6, 1))
            )
            assert ids(store, "todo") == [t1.id]

            gateway.fail_next("update")
            handle = store.move_task(t1.id, "todo", "in-progress", 0)
            assert ids(store, "in-progress") == [t1.id]
            assert ids(store, "todo") == []

            await handle
            return t1

        t1 = asyncio.run(scenario())

        assert ids(store, "todo") == [t1.id]
        assert ids(store, "in-progress") == []
        assert store.get(t1.id).status is TaskStatus.TODO

    def test_failure_notifies_listeners(self, board_gateway: InMemoryGateway):
        """Listeners receive SyncFailed for rolled back moves."""
        store = TaskBoardStore(board_gateway)
        received = []
        store.add_listener(received.append)

        async def scenario():
            await store.load("p1")
            board_gateway.fail_next("update")
            await store.move_task("t3", "in-progress", "done", 1)

        asyncio.run(scenario())

        assert len(received) == 1
        assert isinstance(received[0], SyncFailed)
        assert received[0].task_id == "t3"

    def test_listener_error_does_not_break_rollback(self, board_gateway: InMemoryGateway):
        """A raising listener is logged; the rollback still happens."""
        store = TaskBoardStore(board_gateway)

        def broken(error):
            raise RuntimeError("listener bug")

        store.add_listener(broken)

        async def scenario():
            await store.load("p1")
            board_gateway.fail_next("update")
            await store.move_task("t3", "in-progress", "done", 0)

        asyncio.run(scenario())
        assert ids(store, "in-progress") == ["t3"]

    def test_out_of_order_confirmations(self, board_gateway: InMemoryGateway):
        """Each reconciliation only touches its own task."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            board_gateway.fail_next("update")
            first = store.move_task("t1", "todo", "done", 0)
            second = store.move_task("t3", "in-progress", "done", 0)
            await asyncio.gather(first, second)

        asyncio.run(scenario())

        assert ids(store, "todo") == ["t1", "t2"]
        assert ids(store, "done") == ["t3", "t4"]

    def test_superseded_failure_keeps_newer_move(self, board_gateway: InMemoryGateway):
        """A failed update does not undo a later move of the same task."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            board_gateway.hold("update")
            board_gateway.fail_next("update")
            first = store.move_task("t1", "todo", "in-progress", 0)
            second = store.move_task("t1", "in-progress", "done", 0)
            board_gateway.release("update")
            return await asyncio.gather(first, second)

        first, second = asyncio.run(scenario())

        assert isinstance(first, SyncFailed)
        assert second is None
        assert ids(store, "done") == ["t1", "t4"]
        assert store.get("t1").status is TaskStatus.DONE

    def test_reorder_after_move_still_rolls_back(self, board_gateway: InMemoryGateway):
        """Reordering inside the new column does not block the rollback."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            board_gateway.hold("update")
            board_gateway.fail_next("update")
            handle = store.move_task("t1", "todo", "in-progress", 0)
            store.move_task("t1", "in-progress", "in-progress", 1)
            board_gateway.release("update")
            await handle

        asyncio.run(scenario())

        assert ids(store, "todo") == ["t1", "t2"]
        assert ids(store, "in-progress") == ["t3"]

    def test_move_pending_task_waits_for_confirmation(self, gateway: InMemoryGateway):
        """A task moved before its create confirms is updated under its server id."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            gateway.hold("create")
            create = asyncio.create_task(store.create_task(TaskDraft(title="Quick one")))
            await settle()
            local_id = store.column("todo")[0].id

            handle = store.move_task(local_id, "todo", "done", 0)
            await settle()
            assert gateway.calls_to("update") == []

            gateway.release("create")
            task = await create
            await handle
            return local_id, task

        local_id, task = asyncio.run(scenario())

        updates = gateway.calls_to("update")
        assert len(updates) == 1
        assert updates[0].document_id == task.id
        assert gateway.documents("tasks")[task.id]["status"] == "done"
        assert store.get(local_id).id == task.id
        assert store.get(task.id).status is TaskStatus.DONE

    def test_move_pending_task_dropped_when_create_fails(self, gateway: InMemoryGateway):
        """If the create is rejected, the pending move never reaches the store."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            gateway.hold("create")
            gateway.fail_next("create")
            create = asyncio.create_task(store.create_task(TaskDraft(title="Doomed")))
            await settle()
            local_id = store.column("todo")[0].id
            handle = store.move_task(local_id, "todo", "done", 0)
            gateway.release("create")
            with pytest.raises(CreateFailed):
                await create
            return await handle

        result = asyncio.run(scenario())

        assert result is None
        assert gateway.calls_to("update") == []
        assert len(store) == 0

    def test_index_counts_after_removal(self, board_gateway: InMemoryGateway):
        """Moving to the last slot of the same column is allowed."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            store.move_task("t1", "todo", "todo", 1)
            with pytest.raises(InvalidMove):
                store.move_task("t2", "todo", "todo", 2)

        asyncio.run(scenario())
        assert ids(store, "todo") == ["t2", "t1"]

    @pytest.mark.parametrize(
        ("task_id", "from_column", "to_column", "to_index", "expected_index"),
        [
            ("missing", "todo", "done", 0, None),
            ("t1", "done", "in-progress", 0, None),
            ("t1", "todo", "done", 5, None),
            ("t1", "todo", "done", -1, None),
            ("t1", "todo", "blocked", 0, None),
            ("t1", "todo", "done", 0, 1),
        ],
    )
    def test_invalid_moves_change_nothing(
        self,
        board_gateway: InMemoryGateway,
        task_id,
        from_column,
        to_column,
        to_index,
        expected_index,
    ):
        """Broken preconditions raise InvalidMove and leave the board alone."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            before = snapshot(store)
            with pytest.raises(InvalidMove):
                store.move_task(
                    task_id, from_column, to_column, to_index, expected_index=expected_index
                )
            await store.drain()
            return before

        before = asyncio.run(scenario())

        assert snapshot(store) == before
        assert board_gateway.calls_to("update") == []


class TestTaskBoardStoreLifecycle:
    """Tests for teardown while calls are in flight."""

    def test_late_rollback_after_close_is_dropped(self, board_gateway: InMemoryGateway):
        """A failure arriving after close neither mutates state nor notifies."""
        store = TaskBoardStore(board_gateway)
        received = []
        store.add_listener(received.append)

        async def scenario():
            await store.load("p1")
            board_gateway.hold("update")
            board_gateway.fail_next("update")
            handle = store.move_task("t1", "todo", "done", 0)
            store.close()
            board_gateway.release("update")
            await store.drain()
            return handle

        asyncio.run(scenario())

        assert ids(store, "done") == ["t1", "t4"]
        assert received == []

    def test_late_create_after_close_is_dropped(self, gateway: InMemoryGateway):
        """A confirmation arriving after close does not rewrite local state."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            gateway.hold("create")
            create = asyncio.create_task(store.create_task(TaskDraft(title="Late")))
            await settle()
            store.close()
            gateway.release("create")
            return await create

        task = asyncio.run(scenario())

        assert not task.is_pending
        assert store.column("todo")[0].is_pending

    def test_closed_store_refuses_mutations(self, board_gateway: InMemoryGateway):
        """Every mutating call on a closed store raises StoreClosed."""
        store = TaskBoardStore(board_gateway)

        async def scenario():
            await store.load("p1")
            store.close()
            with pytest.raises(StoreClosed):
                store.move_task("t1", "todo", "done", 0)
            with pytest.raises(StoreClosed):
                await store.create_task(TaskDraft(title="Nope"))
            with pytest.raises(StoreClosed):
                await store.load("p1")

        asyncio.run(scenario())
        assert not store.is_alive

    def test_close_releases_moves_waiting_on_create(self, gateway: InMemoryGateway):
        """Moves parked behind a pending create end when the store closes."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            gateway.hold("create")
            create = asyncio.create_task(store.create_task(TaskDraft(title="Parked")))
            await settle()
            handle = store.move_task(store.column("todo")[0].id, "todo", "done", 0)
            store.close()
            result = await handle
            gateway.release("create")
            await create
            return result

        assert asyncio.run(scenario()) is None
        assert gateway.calls_to("update") == []

    def test_cancelled_create_removes_entry(self, gateway: InMemoryGateway):
        """A create abandoned by its caller leaves no pending task behind."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            gateway.hold("create")
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(store.create_task(TaskDraft(title="Sketch logo")), 0.05)

        asyncio.run(scenario())

        assert len(store) == 0
        assert gateway.documents("tasks") == {}

    def test_cancelled_create_releases_parked_move(self, gateway: InMemoryGateway):
        """A move waiting on a cancelled create ends and drain returns."""
        store = TaskBoardStore(gateway)

        async def scenario():
            await store.load("p1")
            gateway.hold("create")
            create = asyncio.create_task(store.create_task(TaskDraft(title="Parked")))
            await settle()
            handle = store.move_task(store.column("todo")[0].id, "todo", "done", 0)
            create.cancel()
            with pytest.raises(asyncio.CancelledError):
                await create
            result = await handle
            await store.drain()
            return result

        assert asyncio.run(scenario()) is None
        assert len(store) == 0
        assert gateway.calls_to("update") == []
