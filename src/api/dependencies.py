import os

from api import state
from extraction.model_extractor import ModelExtractor
from extraction.task_extractor import TaskExtractor
from llm.llm_client import LLMClient
from storage.task_repository import TaskRepository

# Configuration
MAX_TASK_INPUT_CHARS = int(os.getenv("MAX_TASK_INPUT_CHARS", "1000"))
MAX_TRANSCRIPT_CHARS = int(os.getenv("MAX_TRANSCRIPT_CHARS", "10000"))


def get_repository() -> TaskRepository:
    return state.repository


def get_task_extractor() -> TaskExtractor:
    if state.extractor is None:
        state.extractor = TaskExtractor(ModelExtractor(LLMClient()))
    return state.extractor
