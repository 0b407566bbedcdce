from __future__ import annotations

from datetime import date

import httpx
import pytest

from todolist.client import TaskGateway, TaskStore
from todolist.errors import TaskGatewayError
from todolist.repository import TaskRepository
from todolist.schema import NewTask, TaskFilter


@pytest.mark.asyncio
async def test_crud_round_trip(gateway: TaskGateway) -> None:
    created = await gateway.create_task(NewTask(title="Plan trip", due_date=date(2026, 7, 4)))
    assert created.id > 0
    assert created.due_date == date(2026, 7, 4)

    assert await gateway.get_task(created.id) == created

    updated = await gateway.update_task(created.id, {"completed": True})
    assert updated.completed is True
    assert updated.title == "Plan trip"

    assert await gateway.delete_task(created.id) == [updated]
    assert await gateway.list_tasks() == []


@pytest.mark.asyncio
async def test_list_sends_filter_as_query(gateway: TaskGateway) -> None:
    await gateway.create_task({"title": "Alpha", "completed": True})
    await gateway.create_task({"title": "alphabet"})
    await gateway.create_task({"title": "Beta", "completed": True})

    done = await gateway.list_tasks(TaskFilter(title="ALPHA", completed=True))
    assert [t.title for t in done] == ["Alpha"]

    exact = await gateway.list_tasks(TaskFilter(title="alphabet", exact_title=True))
    assert [t.title for t in exact] == ["alphabet"]


@pytest.mark.asyncio
async def test_not_found_raises_with_status(gateway: TaskGateway) -> None:
    with pytest.raises(TaskGatewayError) as exc_info:
        await gateway.get_task(31337)
    assert exc_info.value.not_found
    assert exc_info.value.detail == "Task not found"


@pytest.mark.asyncio
async def test_due_date_normalized_from_timestamp() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        # 2026-02-03T00:00:00Z in milliseconds
        return httpx.Response(
            200,
            json=[{"id": 1, "title": "t", "description": None, "completed": False, "dueDate": 1770076800000}],
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test") as client:
        tasks = await TaskGateway(client=client).list_tasks()

    assert tasks[0].due_date == date(2026, 2, 3)


@pytest.mark.asyncio
async def test_validation_errors_are_flattened() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"detail": [{"msg": "Field required"}, {"msg": "Bad date"}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test") as client:
        with pytest.raises(TaskGatewayError) as exc_info:
            await TaskGateway(client=client).create_task({"title": "x"})

    assert exc_info.value.status_code == 422
    assert exc_info.value.detail == "Field required; Bad date"
    assert str(exc_info.value) == "Field required; Bad date"
    assert not hasattr(exc_info.value, "message")


@pytest.mark.asyncio
async def test_malformed_task_in_response_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"id": 1, "title": "t", "description": None, "completed": False, "dueDate": 10**20},
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test") as client:
        with pytest.raises(TaskGatewayError, match="Malformed task") as exc_info:
            await TaskGateway(client=client).get_task(1)

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test") as client:
        with pytest.raises(TaskGatewayError) as exc_info:
            await TaskGateway(client=client).list_tasks()

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_store_count_matches_server_after_reconciliation(
    gateway: TaskGateway, repo: TaskRepository
) -> None:
    store = TaskStore(gateway)
    await store.fetch_all()

    a = await store.create(NewTask(title="a"))
    b = await store.create(NewTask(title="b"))
    await store.create(NewTask(title="c"))
    await store.toggle(a.id)
    await store.update(b.id, {"title": "bee"})
    await store.remove(b.id)

    assert store.task_count == repo.count() == 2
    assert all(t.id > 0 for t in store.tasks)
    assert [t.id for t in store.completed_tasks] == [a.id]

    await store.fetch_all(TaskFilter(completed=False))
    assert store.task_count == repo.count(TaskFilter(completed=False)) == 1


@pytest.mark.asyncio
async def test_store_surfaces_server_messages(gateway: TaskGateway) -> None:
    store = TaskStore(gateway)
    with pytest.raises(TaskGatewayError):
        await store.fetch_one(404)
    assert store.error == "Task not found"
