from __future__ import annotations

from typing import Any, List, Optional


class TaskManagerError(Exception):
    """Base class for failures that carry a message fit to show a user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingRequiredField(TaskManagerError):
    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class ModelUnavailable(TaskManagerError):
    """The language model could not be reached or answered with a transport-level error."""


class UnparsableOutput(TaskManagerError):
    """The model answered, but not with the structured data that was asked for."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class ExtractionFailed(TaskManagerError):
    def __init__(self, reason: str):
        super().__init__(f"Failed to parse task: {reason}")
        self.reason = reason


class NoTasksFound(TaskManagerError):
    def __init__(self, message: str = "No actionable tasks were found in the transcript"):
        super().__init__(message)


class NotFound(TaskManagerError):
    def __init__(self, task_id: int):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class ValidationError(TaskManagerError):
    def __init__(self, message: str, details: Optional[List[Any]] = None):
        super().__init__(message)
        self.details = details or []
