from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class Priority(str, Enum):
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"

    @property
    def rank(self) -> int:
        """1 for the most urgent level, 4 for the least."""
        return int(self.value[1])


class Source(str, Enum):
    SINGLE = "single"
    MEETING = "meeting"


BulkActionName = Literal["delete", "complete", "incomplete", "update_priority"]


class PublicModel(BaseModel):
    """
    Python side uses snake_case attributes, the public (JSON) shape uses camelCase.
    Both spellings are accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def public(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class FieldBundle(PublicModel):
    """Normalized fields of one extracted task. Only the normalizer should build these."""

    task_name: str = Field(..., min_length=1)
    assignee: Optional[str] = None
    due_date: Optional[date] = None
    due_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    priority: Priority = Priority.P3

    @field_validator("task_name")
    @classmethod
    def task_name_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("task_name must not be blank")
        return v2


class TaskRecord(PublicModel):
    id: int
    task_name: str = Field(..., min_length=1)
    assignee: Optional[str] = None
    due_date: Optional[date] = None
    due_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    priority: Priority = Priority.P3

    completed: bool = False
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    original_input: str = ""
    source: Source = Source.SINGLE
    tags: List[str] = Field(default_factory=list)
    notes: str = ""

    def due_at(self, default_time: time) -> Optional[datetime]:
        """Due date combined with due time, or with `default_time` when no time is set."""
        if self.due_date is None:
            return None
        if self.due_time:
            hours, minutes = map(int, self.due_time.split(":"))
            return datetime.combine(self.due_date, time(hours, minutes))
        return datetime.combine(self.due_date, default_time)

    def is_overdue(self, now: datetime) -> bool:
        if self.completed or self.due_date is None:
            return False
        # no time means the task is due by the end of that day
        return self.due_at(time(23, 59)) < now


class TaskUpdate(PublicModel):
    """Partial update; only fields that were actually supplied are applied."""

    model_config = ConfigDict(extra="ignore")

    task_name: Optional[str] = Field(None, min_length=1)
    assignee: Optional[str] = None
    due_date: Optional[date] = None
    due_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    priority: Optional[Priority] = None
    completed: Optional[bool] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator("task_name")
    @classmethod
    def task_name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            raise ValueError("task_name cannot be cleared")
        v2 = v.strip()
        if not v2:
            raise ValueError("task_name must not be blank")
        return v2

    @field_validator("priority", mode="before")
    @classmethod
    def priority_upper(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class TaskQuery(PublicModel):
    completed: Optional[bool] = None
    source: Optional[Source] = None
    priority: Optional[Priority] = None
    assignee: Optional[str] = None
    overdue: Optional[bool] = None
    search: Optional[str] = None

    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1)

    @field_validator("limit")
    @classmethod
    def cap_limit(cls, v: int) -> int:
        return min(v, 100)


class Pagination(PublicModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TodayActivity(PublicModel):
    created: int = 0
    completed: int = 0
    updated: int = 0


class TaskStats(PublicModel):
    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    due_today: int = 0
    due_this_week: int = 0
    by_priority: Dict[str, int] = Field(default_factory=dict)
    by_source: Dict[str, int] = Field(default_factory=dict)
    assignees: List[str] = Field(default_factory=list)
    today: TodayActivity = Field(default_factory=TodayActivity)


class QueryResult(PublicModel):
    items: List[TaskRecord]
    pagination: Pagination
    stats: TaskStats


class BulkResult(PublicModel):
    action: BulkActionName
    affected: List[int] = Field(default_factory=list)
    not_found: List[int] = Field(default_factory=list)


class SourceDeletion(PublicModel):
    deleted: List[TaskRecord] = Field(default_factory=list)
    count: int = 0


class ExportSnapshot(PublicModel):
    export_date: datetime
    version: str
    task_count: int
    tasks: List[TaskRecord] = Field(default_factory=list)


class ImportResult(PublicModel):
    imported_count: int
    skipped_count: int
    total_tasks: int
