"""SqliteTaskStore 测试"""

from datetime import timedelta

import pytest
from surgemind.core.exceptions import InvalidTransitionError, TaskNotFoundError
from surgemind.core.models import TaskStatus
from surgemind.core.store.task_store import SqliteTaskStore


@pytest.fixture
def task_store(core_db) -> SqliteTaskStore:
    return SqliteTaskStore(core_db)


class TestAppend:
    async def test_append_and_get(self, task_store, task_factory):
        task = task_factory(enriched=True)
        await task_store.append(task)

        loaded = await task_store.get_task(task.task_id)
        assert loaded == task

    async def test_get_missing(self, task_store):
        assert await task_store.get_task("missing") is None

    async def test_append_idempotent_on_task_id(self, task_store, task_factory):
        """重试送达同一任务不报错，也不覆盖首次写入"""
        task = task_factory()
        await task_store.append(task)
        await task_store.append(task.model_copy(update={"title": "changed"}))

        assert await task_store.get_task(task.task_id) == task
        assert len(await task_store.list_tasks()) == 1


class TestList:
    async def test_filters_and_order(self, task_store, task_factory, now):
        await task_store.append(task_factory("t1", assignee_id="a", created_at=now))
        await task_store.append(
            task_factory("t2", assignee_id="b", created_at=now + timedelta(seconds=1))
        )
        await task_store.append(
            task_factory(
                "t3",
                assignee_id="a",
                status=TaskStatus.IN_PROGRESS,
                created_at=now + timedelta(seconds=2),
            )
        )

        assert [t.task_id for t in await task_store.list_tasks()] == ["t3", "t2", "t1"]
        assert [t.task_id for t in await task_store.list_tasks(assignee_id="a")] == [
            "t3",
            "t1",
        ]
        assert [t.task_id for t in await task_store.list_tasks(status="Pending")] == [
            "t2",
            "t1",
        ]
        assert [
            t.task_id
            for t in await task_store.list_tasks(status="In-Progress", assignee_id="a")
        ] == ["t3"]


class TestUpdateStatus:
    async def test_forward(self, task_store, task_factory):
        await task_store.append(task_factory("t1"))

        task = await task_store.update_task_status("t1", TaskStatus.IN_PROGRESS)
        assert task.status == TaskStatus.IN_PROGRESS
        task = await task_store.update_task_status("t1", TaskStatus.COMPLETED)
        assert task.status == TaskStatus.COMPLETED
        assert (await task_store.get_task("t1")).status == TaskStatus.COMPLETED

    async def test_skip_rejected(self, task_store, task_factory):
        await task_store.append(task_factory("t1"))
        with pytest.raises(InvalidTransitionError) as exc_info:
            await task_store.update_task_status("t1", TaskStatus.COMPLETED)
        assert exc_info.value.from_status == "Pending"
        assert (await task_store.get_task("t1")).status == TaskStatus.PENDING

    async def test_completed_is_terminal(self, task_store, task_factory):
        await task_store.append(task_factory("t1", status=TaskStatus.COMPLETED))
        with pytest.raises(InvalidTransitionError):
            await task_store.update_task_status("t1", TaskStatus.IN_PROGRESS)

    async def test_missing(self, task_store):
        with pytest.raises(TaskNotFoundError):
            await task_store.update_task_status("nope", TaskStatus.IN_PROGRESS)
