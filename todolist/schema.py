from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from todolist.dates import to_calendar_date

# Fields that may be omitted from a patch but never cleared with null.
NON_NULLABLE_FIELDS = ("title", "completed", "due_date")


def _check_title(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("Title must be at least 1 character")
    return value


def _normalize_due(value: Any) -> Any:
    if value is None:
        return None
    return to_calendar_date(value)


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NewTask(WireModel):
    title: str
    description: Optional[str] = None
    completed: bool = False
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value):
        return _check_title(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def due_to_day(cls, value):
        return _normalize_due(value)


class TaskUpdate(WireModel):
    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value):
        return _check_title(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def due_to_day(cls, value):
        return _normalize_due(value)

    @model_validator(mode="after")
    def reject_nulls(self) -> "TaskUpdate":
        for name in NON_NULLABLE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


class Task(NewTask):
    model_config = ConfigDict(frozen=True)

    id: int
    due_date: date


class TaskFilter(WireModel):
    title: Optional[str] = None
    date_range_start: Optional[date] = None
    date_range_end: Optional[date] = None
    completed: Optional[bool] = None
    exact_title: Optional[bool] = None
    id: Optional[int] = None

    @field_validator("date_range_start", "date_range_end", mode="before")
    @classmethod
    def bounds_to_day(cls, value):
        return _normalize_due(value)

    def to_query(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
