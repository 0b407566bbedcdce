from typing import Optional


class TodoError(Exception):
    """Base class for todolist errors."""


class TaskValidationError(TodoError, ValueError):
    """Input that can never be persisted (empty title, null required field...)."""


class MissingTaskIdError(TaskValidationError):
    """An operation that targets one task was called without an id."""


class TaskGatewayError(TodoError):
    """The client could not get a successful answer from the task API."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail

    @property
    def not_found(self) -> bool:
        return self.status_code == 404
