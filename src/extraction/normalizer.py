"""Field Normalizer: the one place where loose field bundles become FieldBundle."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from smart_tasks.errors import MissingRequiredField
from smart_tasks.models import FieldBundle, Priority

logger = logging.getLogger(__name__)

_PRIORITY_RE = re.compile(r"^(?:p|priority\s*)?([1-4])$", re.IGNORECASE)
_TIME_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)(?::[0-5]\d)?$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
_EMPTY_MARKERS = {"", "null", "none", "n/a"}


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v).strip() for v in value if str(v).strip())
    text = str(value).strip()
    if text.lower() in _EMPTY_MARKERS:
        return None
    return text


def parse_priority(value: Any) -> Optional[Priority]:
    """P1..P4 from 'P1', 'p2', 3, 'priority 4'; None when the value is not a priority."""
    if isinstance(value, Priority):
        return value
    if value is None or isinstance(value, bool):
        return None
    match = _PRIORITY_RE.match(str(value).strip())
    if not match:
        return None
    return Priority(f"P{match.group(1)}")


def normalize_priority(value: Any) -> Priority:
    priority = parse_priority(value)
    if priority is None:
        if clean_text(value) is not None:
            logger.warning(f"Invalid priority {value!r}, defaulting to P3")
        return Priority.P3
    return priority


def normalize_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = clean_text(value)
    if text is None:
        return None
    if _DATE_RE.match(text):
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    logger.warning(f"Ignoring unparsable due date {value!r}")
    return None


def normalize_time(value: Any) -> Optional[str]:
    text = clean_text(value)
    if text is None:
        return None
    match = _TIME_RE.match(text)
    if not match:
        logger.warning(f"Ignoring unparsable due time {value!r}")
        return None
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def normalize(raw: Mapping[str, Any], *, require_assignee: bool = False) -> FieldBundle:
    """
    Canonicalize a raw bundle (snake_case or camelCase keys) into a FieldBundle.

    Absent assignee/date/time become None and an absent or invalid priority
    becomes P3. A missing task name raises MissingRequiredField; so does a
    missing assignee when `require_assignee` is set (transcript items).
    """
    task_name = clean_text(_pick(raw, "task_name", "taskName"))
    if not task_name:
        raise MissingRequiredField("task_name")

    assignee = clean_text(_pick(raw, "assignee"))
    if require_assignee and not assignee:
        raise MissingRequiredField("assignee")

    try:
        return FieldBundle(
            task_name=task_name,
            assignee=assignee,
            due_date=normalize_date(_pick(raw, "due_date", "dueDate")),
            due_time=normalize_time(_pick(raw, "due_time", "dueTime")),
            priority=normalize_priority(_pick(raw, "priority")),
        )
    except PydanticValidationError as e:
        # every field above is already coerced; only the name can still be rejected
        raise MissingRequiredField("task_name") from e
