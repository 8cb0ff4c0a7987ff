"""
In-memory task repository.

Owns the record set and the id counter. Every read and write goes through
one re-entrant lock, so a single instance can be shared by request
handlers running in worker threads. Records handed out are copies;
callers re-fetch instead of holding on to them.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from extraction.normalizer import parse_priority
from smart_tasks.errors import NotFound, ValidationError
from smart_tasks.models import (
    BulkResult,
    FieldBundle,
    Pagination,
    Priority,
    QueryResult,
    Source,
    SourceDeletion,
    TaskQuery,
    TaskRecord,
    TaskStats,
    TaskUpdate,
    TodayActivity,
)

logger = logging.getLogger(__name__)

BULK_ACTIONS = ("delete", "complete", "incomplete", "update_priority")

# fields that cannot be set to null through update()
_NON_NULLABLE = ("priority", "completed", "tags", "notes")


@dataclass
class TaskSeed:
    """Everything needed to create a record besides identity and timestamps."""

    bundle: FieldBundle
    source: Source = Source.SINGLE
    original_input: str = ""
    completed: bool = False
    tags: List[str] = field(default_factory=list)
    notes: str = ""


def _error_details(e: PydanticValidationError) -> List[Any]:
    return e.errors(include_url=False, include_context=False, include_input=False)


def sort_key(record: TaskRecord) -> tuple:
    """Unfinished first, then most urgent, then soonest due (dated before undated), then newest."""
    due = record.due_at(time(0, 0))
    return (
        record.completed,
        record.priority.rank,
        due is None,
        due or datetime.max,
        -record.created_at.timestamp(),
        -record.id,
    )


def _matches(record: TaskRecord, criteria: TaskQuery, now: datetime) -> bool:
    if criteria.completed is not None and record.completed != criteria.completed:
        return False
    if criteria.source is not None and record.source != criteria.source:
        return False
    if criteria.priority is not None and record.priority != criteria.priority:
        return False
    if criteria.assignee:
        if not record.assignee or criteria.assignee.lower() not in record.assignee.lower():
            return False
    if criteria.overdue is not None and record.is_overdue(now) != criteria.overdue:
        return False
    if criteria.search:
        needle = criteria.search.lower()
        haystacks = (record.task_name, record.assignee or "", record.notes)
        if not any(needle in h.lower() for h in haystacks):
            return False
    return True


def compute_stats(records: Iterable[TaskRecord], now: datetime) -> TaskStats:
    today = now.date()
    midnight = datetime.combine(today, time.min)
    week_end = today + timedelta(days=7)

    stats = TaskStats(
        by_priority={p.value: 0 for p in Priority},
        by_source={s.value: 0 for s in Source},
        today=TodayActivity(),
    )
    assignees: Dict[str, str] = {}

    for record in records:
        stats.total += 1
        stats.by_source[record.source.value] += 1
        if record.assignee:
            assignees.setdefault(record.assignee.lower(), record.assignee)

        if record.created_at >= midnight:
            stats.today.created += 1
        if record.updated_at >= midnight:
            stats.today.updated += 1
        if record.completed_at is not None and record.completed_at >= midnight:
            stats.today.completed += 1

        if record.completed:
            stats.completed += 1
            continue

        stats.pending += 1
        stats.by_priority[record.priority.value] += 1
        if record.is_overdue(now):
            stats.overdue += 1
        if record.due_date is not None:
            if record.due_date == today:
                stats.due_today += 1
            if today <= record.due_date <= week_end:
                stats.due_this_week += 1

    stats.assignees = sorted(assignees.values(), key=str.lower)
    return stats


class TaskRepository:
    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._records: Dict[int, TaskRecord] = {}
        self._next_id = 1

    def now(self) -> datetime:
        return self._clock()

    # ---- creation ----

    def create(
        self, bundle: FieldBundle, source: Source = Source.SINGLE, original_input: str = ""
    ) -> TaskRecord:
        with self._lock:
            record = self._insert(TaskSeed(bundle=bundle, source=source, original_input=original_input))
        logger.info(f"Created task {record.id} ({record.source.value}): {record.task_name!r}")
        return record.model_copy(deep=True)

    def create_many(
        self,
        bundles: Iterable[FieldBundle],
        source: Source = Source.MEETING,
        original_input: str = "",
    ) -> List[TaskRecord]:
        with self._lock:
            created = [
                self._insert(TaskSeed(bundle=b, source=source, original_input=original_input))
                for b in bundles
            ]
        logger.info(f"Created {len(created)} task(s) from {Source(source).value} input")
        return [r.model_copy(deep=True) for r in created]

    def restore(self, seeds: Iterable[TaskSeed], *, replace: bool = False) -> int:
        """Insert prepared seeds, optionally wiping everything first. Returns the new total."""
        with self._lock:
            if replace:
                self._records.clear()
                self._next_id = 1
            for seed in seeds:
                self._insert(seed)
            return len(self._records)

    def _insert(self, seed: TaskSeed) -> TaskRecord:
        now = self._clock()
        bundle = seed.bundle
        record = TaskRecord(
            id=self._next_id,
            task_name=bundle.task_name,
            assignee=bundle.assignee,
            due_date=bundle.due_date,
            due_time=bundle.due_time,
            priority=bundle.priority,
            completed=seed.completed,
            completed_at=now if seed.completed else None,
            created_at=now,
            updated_at=now,
            original_input=seed.original_input,
            source=Source(seed.source),
            tags=list(seed.tags),
            notes=seed.notes,
        )
        self._records[record.id] = record
        self._next_id += 1
        return record

    # ---- reads ----

    def get_by_id(self, task_id: int) -> Optional[TaskRecord]:
        with self._lock:
            record = self._records.get(task_id)
            return record.model_copy(deep=True) if record else None

    def get(self, task_id: int) -> TaskRecord:
        record = self.get_by_id(task_id)
        if record is None:
            raise NotFound(task_id)
        return record

    def all(self) -> List[TaskRecord]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._records.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    # ---- mutation ----

    def update(self, task_id: int, fields: Union[TaskUpdate, Mapping[str, Any]]) -> TaskRecord:
        changes = self._parse_update(fields)
        data = changes.model_dump(exclude_unset=True)
        for key in _NON_NULLABLE:
            if key in data and data[key] is None:
                del data[key]

        with self._lock:
            current = self._require(task_id)
            now = self._clock()
            if "completed" in data:
                data.update(self._completion_changes(current, data["completed"], now))
            data["updated_at"] = now
            updated = current.model_copy(update=data)
            self._records[task_id] = updated
        logger.debug(f"Updated task {task_id}: {sorted(data)}")
        return updated.model_copy(deep=True)

    def toggle_complete(self, task_id: int, completed: bool) -> TaskRecord:
        with self._lock:
            current = self._require(task_id)
            now = self._clock()
            data = self._completion_changes(current, bool(completed), now)
            data["updated_at"] = now
            updated = current.model_copy(update=data)
            self._records[task_id] = updated
        return updated.model_copy(deep=True)

    def delete(self, task_id: int) -> TaskRecord:
        with self._lock:
            record = self._records.pop(task_id, None)
        if record is None:
            raise NotFound(task_id)
        logger.info(f"Deleted task {task_id}")
        return record

    def delete_by_source(self, source: Union[Source, str]) -> SourceDeletion:
        try:
            source = Source(source)
        except ValueError as e:
            raise ValidationError(f"Invalid source: {source!r}") from e

        with self._lock:
            doomed = [r for r in self._records.values() if r.source == source]
            for record in doomed:
                del self._records[record.id]
        logger.info(f"Deleted {len(doomed)} task(s) with source {source.value}")
        return SourceDeletion(deleted=doomed, count=len(doomed))

    def bulk_action(
        self,
        ids: Iterable[int],
        action: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> BulkResult:
        """Apply `action` to each id independently; unknown ids are reported, not fatal."""
        if action not in BULK_ACTIONS:
            raise ValidationError(f"Unknown bulk action: {action!r}")

        priority: Optional[Priority] = None
        if action == "update_priority":
            priority = parse_priority((params or {}).get("priority"))
            if priority is None:
                raise ValidationError("update_priority requires a priority of P1, P2, P3 or P4")

        result = BulkResult(action=action)
        with self._lock:
            now = self._clock()
            for task_id in dict.fromkeys(ids):
                current = self._records.get(task_id)
                if current is None:
                    result.not_found.append(task_id)
                    continue

                if action == "delete":
                    del self._records[task_id]
                else:
                    if action == "update_priority":
                        data: Dict[str, Any] = {"priority": priority}
                    else:
                        data = self._completion_changes(current, action == "complete", now)
                    data["updated_at"] = now
                    self._records[task_id] = current.model_copy(update=data)
                result.affected.append(task_id)

        logger.info(
            f"Bulk {action}: {len(result.affected)} affected, {len(result.not_found)} not found"
        )
        return result

    # ---- queries ----

    def query(self, criteria: Union[TaskQuery, Mapping[str, Any], None] = None) -> QueryResult:
        criteria = self._parse_query(criteria)
        with self._lock:
            records = list(self._records.values())
        now = self._clock()

        matched = sorted((r for r in records if _matches(r, criteria, now)), key=sort_key)
        total = len(matched)
        start = (criteria.page - 1) * criteria.limit
        page_items = matched[start : start + criteria.limit]

        return QueryResult(
            items=[r.model_copy(deep=True) for r in page_items],
            pagination=Pagination(
                page=criteria.page,
                limit=criteria.limit,
                total=total,
                total_pages=math.ceil(total / criteria.limit),
            ),
            stats=compute_stats(records, now),
        )

    def stats(self) -> TaskStats:
        with self._lock:
            records = list(self._records.values())
        return compute_stats(records, self._clock())

    # ---- helpers ----

    def _require(self, task_id: int) -> TaskRecord:
        record = self._records.get(task_id)
        if record is None:
            raise NotFound(task_id)
        return record

    @staticmethod
    def _completion_changes(current: TaskRecord, completed: bool, now: datetime) -> Dict[str, Any]:
        # completed_at is set only on the false -> true transition and cleared on true -> false
        if completed and not current.completed:
            return {"completed": True, "completed_at": now}
        if not completed and current.completed:
            return {"completed": False, "completed_at": None}
        return {"completed": completed}

    @staticmethod
    def _parse_update(fields: Union[TaskUpdate, Mapping[str, Any]]) -> TaskUpdate:
        if isinstance(fields, TaskUpdate):
            return fields
        try:
            return TaskUpdate.model_validate(dict(fields))
        except PydanticValidationError as e:
            raise ValidationError("Invalid task fields", details=_error_details(e)) from e

    @staticmethod
    def _parse_query(criteria: Union[TaskQuery, Mapping[str, Any], None]) -> TaskQuery:
        if criteria is None:
            return TaskQuery()
        if isinstance(criteria, TaskQuery):
            return criteria
        try:
            return TaskQuery.model_validate(dict(criteria))
        except PydanticValidationError as e:
            raise ValidationError("Invalid query", details=_error_details(e)) from e
