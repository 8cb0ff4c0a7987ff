from __future__ import annotations
from typing import Any, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

class ExtractedTask(BaseModel):
    """
    One task as the model returned it. Only the name is checked here;
    everything else is cleaned up by the normalizer.
    """

    model_config = ConfigDict(extra="ignore")

    task_name: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("task_name", "taskName", "task")
    )
    assignee: Optional[Any] = None
    due_date: Optional[Any] = Field(None, validation_alias=AliasChoices("due_date", "dueDate"))
    due_time: Optional[Any] = Field(None, validation_alias=AliasChoices("due_time", "dueTime"))
    priority: Optional[Any] = None

    @field_validator("task_name")
    @classmethod
    def task_name_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("task_name must not be blank")
        return v2

class TaskExtractionResult(BaseModel):
    tasks: List[ExtractedTask] = Field(default_factory=list)
