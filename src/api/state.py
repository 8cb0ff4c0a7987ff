from typing import Optional

from extraction.task_extractor import TaskExtractor
from storage.task_repository import TaskRepository

# The one record store for this process; request handlers get it through dependencies.
repository: TaskRepository = TaskRepository()

# Built on first use so the LLM provider picks up the environment at that time.
extractor: Optional[TaskExtractor] = None
