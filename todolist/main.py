import logging
from datetime import date
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from todolist.config import get_settings
from todolist.db import create_db_engine, init_db
from todolist.errors import MissingTaskIdError, TaskValidationError
from todolist.repository import TaskRepository
from todolist.schema import NewTask, Task, TaskFilter, TaskUpdate

logger = logging.getLogger(__name__)

# FastAPI App initialization
app = FastAPI(title="todolist")


@lru_cache(maxsize=1)
def get_repository() -> TaskRepository:
    settings = get_settings()
    session_factory = init_db(create_db_engine(settings.database_url))
    return TaskRepository(session_factory)


@app.exception_handler(TaskValidationError)
async def task_validation_error_handler(request: Request, exc: TaskValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(MissingTaskIdError)
async def missing_task_id_handler(request: Request, exc: MissingTaskIdError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def _persistence_failure(message: str) -> HTTPException:
    logger.exception(message)
    return HTTPException(status_code=500, detail=message)


@app.get("/health")
def health(repo: TaskRepository = Depends(get_repository)):
    try:
        total = repo.count()
    except SQLAlchemyError:
        raise _persistence_failure("Failed to count tasks")
    return {"status": "ok", "tasks": total}


@app.get("/tasks", response_model=list[Task])
def get_tasks(
    title: Optional[str] = None,
    date_range_start: Optional[date] = Query(None, alias="dateRangeStart"),
    date_range_end: Optional[date] = Query(None, alias="dateRangeEnd"),
    completed: Optional[bool] = None,
    exact_title: Optional[bool] = Query(None, alias="exactTitle"),
    id: Optional[int] = None,
    repo: TaskRepository = Depends(get_repository),
):
    task_filter = TaskFilter(
        title=title,
        date_range_start=date_range_start,
        date_range_end=date_range_end,
        completed=completed,
        exact_title=exact_title,
        id=id,
    )
    try:
        return repo.list(task_filter)
    except SQLAlchemyError:
        raise _persistence_failure("Failed to fetch tasks")


@app.post("/tasks", response_model=Task, status_code=201)
def create_task(task: NewTask, repo: TaskRepository = Depends(get_repository)):
    try:
        created = repo.create(task)
    except SQLAlchemyError:
        raise _persistence_failure("Failed to create task")
    logger.info("Created task id=%s", created.id)
    return created


@app.get("/tasks/{task_id}", response_model=Task)
def get_task(task_id: int, repo: TaskRepository = Depends(get_repository)):
    try:
        task = repo.get(task_id)
    except SQLAlchemyError:
        raise _persistence_failure("Failed to fetch task")
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@app.patch("/tasks/{task_id}", response_model=Task)
def update_task(task_id: int, fields: TaskUpdate, repo: TaskRepository = Depends(get_repository)):
    try:
        task = repo.update(task_id, fields)
    except SQLAlchemyError:
        raise _persistence_failure("Failed to update task")
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@app.delete("/tasks/{task_id}", response_model=list[Task])
def delete_task(task_id: int, repo: TaskRepository = Depends(get_repository)):
    try:
        removed = repo.delete(task_id)
    except SQLAlchemyError:
        raise _persistence_failure("Failed to delete task")
    logger.info("Deleted task id=%s removed=%d", task_id, len(removed))
    return removed
