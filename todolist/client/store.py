from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping, Optional, Union

from todolist.client.gateway import TaskGateway
from todolist.dates import today
from todolist.schema import NewTask, Task, TaskFilter, TaskUpdate

logger = logging.getLogger(__name__)

Listener = Callable[["TaskStore"], None]


def _message(exc: BaseException, fallback: str) -> str:
    detail = getattr(exc, "detail", None)
    if isinstance(detail, str) and detail:
        return detail
    return fallback


class TaskStore:
    """
    Client-side view of all tasks with optimistic mutations.

    Every mutation is applied locally first, then sent through the gateway.
    When the call settles the local entry is replaced with what the server
    returned, or the pre-mutation snapshot is put back and ``error`` is set.
    Two mutations racing on the same task: whichever settles last wins.

    State changes are published to listeners registered with ``subscribe``.
    """

    def __init__(self, gateway: TaskGateway) -> None:
        self._gateway = gateway
        self._tasks: tuple[Task, ...] = ()
        self._loading = False
        self._error: Optional[str] = None
        self._listeners: list[Listener] = []
        self._last_temp_id = 0

    # ---- state (read-only from outside) ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def completed_tasks(self) -> list[Task]:
        return [t for t in self._tasks if t.completed]

    @property
    def pending_tasks(self) -> list[Task]:
        return [t for t in self._tasks if not t.completed]

    @property
    def task_count(self) -> int:
        return len(self._tasks)

    # ---- subscriptions ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(store)`` after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Task store listener failed: %r", listener)

    # ---- helpers ----

    def _next_temp_id(self) -> int:
        # Negated current time in ms; stepped down if two creates share a millisecond.
        temp_id = min(-(time.time_ns() // 1_000_000), self._last_temp_id - 1)
        self._last_temp_id = temp_id
        return temp_id

    def _replace(self, task_id: int, task: Task) -> None:
        self._tasks = tuple(task if t.id == task_id else t for t in self._tasks)

    def _fail(self, fallback: str, exc: BaseException) -> None:
        self._error = _message(exc, fallback)
        logger.error("%s: %s", fallback, exc, exc_info=exc)
        self._notify()

    # ---- reads ----

    async def fetch_all(self, task_filter: Optional[TaskFilter] = None) -> None:
        """Replace ``tasks`` with the server's list. Failures end up in ``error`` only."""
        self._loading = True
        self._error = None
        self._notify()
        try:
            self._tasks = tuple(await self._gateway.list_tasks(task_filter))
        except Exception as e:
            self._error = _message(e, "Failed to fetch tasks")
            logger.error("Failed to fetch tasks: %s", e, exc_info=e)
        finally:
            self._loading = False
            self._notify()

    async def fetch_one(self, task_id: int) -> Task:
        """Fetch one task straight from the server; local state is left alone."""
        self._error = None
        try:
            return await self._gateway.get_task(task_id)
        except Exception as e:
            self._fail("Failed to fetch task", e)
            raise

    def fetch_local_one(self, task_id: int) -> Optional[Task]:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    # ---- mutations ----

    async def create(self, new_task: Union[NewTask, Mapping[str, Any]]) -> Task:
        if not isinstance(new_task, NewTask):
            new_task = NewTask.model_validate(new_task)

        self._error = None
        temp_id = self._next_temp_id()
        optimistic = Task(
            id=temp_id,
            title=new_task.title,
            description=new_task.description,
            completed=new_task.completed,
            due_date=new_task.due_date or today(),
        )
        self._tasks = (*self._tasks, optimistic)
        self._notify()

        try:
            created = await self._gateway.create_task(new_task)
        except Exception as e:
            self._tasks = tuple(t for t in self._tasks if t.id != temp_id)
            self._fail("Failed to create task", e)
            raise

        self._replace(temp_id, created)
        self._notify()
        return created

    async def update(
        self,
        task_id: int,
        fields: Union[TaskUpdate, Mapping[str, Any]],
    ) -> Optional[Task]:
        """Shallow-merge ``fields`` into the task; no-op when the id is not loaded."""
        self._error = None
        previous = self.fetch_local_one(task_id)
        if previous is None:
            return None

        if not isinstance(fields, TaskUpdate):
            fields = TaskUpdate.model_validate(fields)

        self._replace(task_id, previous.model_copy(update=fields.changes()))
        self._notify()

        try:
            updated = await self._gateway.update_task(task_id, fields)
        except Exception as e:
            self._replace(task_id, previous)
            self._fail("Failed to update task", e)
            raise

        self._replace(task_id, updated)
        self._notify()
        return updated

    async def toggle(self, task_id: int) -> Optional[Task]:
        task = self.fetch_local_one(task_id)
        if task is None:
            return None
        fields = task.model_dump(exclude={"id"})
        fields["completed"] = not task.completed
        return await self.update(task_id, fields)

    async def remove(self, task_id: int) -> None:
        self._error = None
        previous = self._tasks
        self._tasks = tuple(t for t in previous if t.id != task_id)
        self._notify()

        try:
            await self._gateway.delete_task(task_id)
        except Exception as e:
            self._tasks = previous
            self._fail("Failed to delete task", e)
            raise
