from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Union

from pydantic import ValidationError
from sqlalchemy import and_, delete, func, select, true
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from todolist.dates import today
from todolist.db import TaskRow
from todolist.errors import MissingTaskIdError, TaskValidationError
from todolist.schema import NewTask, Task, TaskFilter, TaskUpdate

logger = logging.getLogger(__name__)


# ---- filter predicates ----

class Predicate(Protocol):
    def clause(self) -> ColumnElement: ...


@dataclass(frozen=True)
class TitlePredicate:
    """Exact title match, or case-insensitive substring match."""

    title: str
    exact: bool = False

    def clause(self) -> ColumnElement:
        if self.exact:
            return TaskRow.title == self.title
        return func.lower(TaskRow.title).contains(self.title.lower(), autoescape=True)


@dataclass(frozen=True)
class DueAfterPredicate:
    start: date

    def clause(self) -> ColumnElement:
        return TaskRow.due_date >= self.start


@dataclass(frozen=True)
class DueBeforePredicate:
    end: date

    def clause(self) -> ColumnElement:
        return TaskRow.due_date <= self.end


@dataclass(frozen=True)
class CompletedPredicate:
    completed: bool

    def clause(self) -> ColumnElement:
        return TaskRow.completed == self.completed


@dataclass(frozen=True)
class IdPredicate:
    task_id: int

    def clause(self) -> ColumnElement:
        return TaskRow.id == self.task_id


def build_predicates(task_filter: Optional[TaskFilter]) -> List[Predicate]:
    """One predicate per filter field that was supplied."""
    if task_filter is None:
        return []

    predicates: List[Predicate] = []
    if task_filter.completed is not None:
        predicates.append(CompletedPredicate(task_filter.completed))
    if task_filter.date_range_start is not None:
        predicates.append(DueAfterPredicate(task_filter.date_range_start))
    if task_filter.date_range_end is not None:
        predicates.append(DueBeforePredicate(task_filter.date_range_end))
    if task_filter.title:
        predicates.append(TitlePredicate(task_filter.title, exact=bool(task_filter.exact_title)))
    if task_filter.id is not None:
        predicates.append(IdPredicate(task_filter.id))
    return predicates


def conjunction(predicates: Iterable[Predicate]) -> ColumnElement:
    clauses = [p.clause() for p in predicates]
    if not clauses:
        return true()
    return and_(*clauses)


# ---- repository ----

def _row_to_task(row: TaskRow) -> Task:
    return Task(
        id=row.id,
        title=row.title,
        description=row.description,
        completed=bool(row.completed),
        due_date=row.due_date,
    )


class TaskRepository:
    """
    Translates CRUD intents and filters into queries on the ``todo`` table.

    Holds no state besides the session factory; every call runs in its own
    transaction. Database failures surface as ``SQLAlchemyError``.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def create(self, new_task: Union[NewTask, Mapping[str, Any]]) -> Task:
        if not isinstance(new_task, NewTask):
            try:
                new_task = NewTask.model_validate(new_task)
            except ValidationError as e:
                raise TaskValidationError(str(e)) from e
        if not new_task.title or not new_task.title.strip():
            raise TaskValidationError("Title is required")

        row = TaskRow(
            title=new_task.title,
            description=new_task.description,
            completed=new_task.completed,
            due_date=new_task.due_date or today(),
        )

        with self._session_factory.begin() as session:
            session.add(row)
            session.flush()
            task = _row_to_task(row)

        logger.debug("Task created id=%s title=%r", task.id, task.title)
        return task

    def get(self, task_id: int) -> Optional[Task]:
        with self._session_factory() as session:
            row = session.get(TaskRow, task_id)
            return _row_to_task(row) if row is not None else None

    def list(self, task_filter: Optional[TaskFilter] = None) -> List[Task]:
        stmt = (
            select(TaskRow)
            .where(conjunction(build_predicates(task_filter)))
            .order_by(TaskRow.id.asc())
        )
        with self._session_factory() as session:
            return [_row_to_task(r) for r in session.scalars(stmt)]

    def count(self, task_filter: Optional[TaskFilter] = None) -> int:
        stmt = (
            select(func.count())
            .select_from(TaskRow)
            .where(conjunction(build_predicates(task_filter)))
        )
        with self._session_factory() as session:
            return int(session.scalar(stmt) or 0)

    def update(
        self,
        task_id: Optional[int],
        fields: Union[TaskUpdate, Mapping[str, Any]],
    ) -> Optional[Task]:
        if task_id is None:
            raise MissingTaskIdError("Missing task id")
        if not isinstance(fields, TaskUpdate):
            try:
                fields = TaskUpdate.model_validate(fields)
            except ValidationError as e:
                raise TaskValidationError(str(e)) from e
        changes = fields.changes()

        with self._session_factory.begin() as session:
            row = session.get(TaskRow, task_id)
            if row is None:
                return None
            for name, value in changes.items():
                setattr(row, name, value)
            session.flush()
            task = _row_to_task(row)

        logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
        return task

    def delete(self, task_ids: Union[int, Iterable[int]]) -> List[Task]:
        """Remove the given task(s); unknown ids are skipped silently."""
        ids = [task_ids] if isinstance(task_ids, int) else [int(i) for i in task_ids]
        if not ids:
            return []

        with self._session_factory.begin() as session:
            rows = session.scalars(
                select(TaskRow).where(TaskRow.id.in_(ids)).order_by(TaskRow.id.asc())
            ).all()
            removed = [_row_to_task(r) for r in rows]
            session.execute(delete(TaskRow).where(TaskRow.id.in_(ids)))

        logger.debug("Tasks deleted ids=%s removed=%d", ids, len(removed))
        return removed
