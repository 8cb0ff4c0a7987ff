import asyncio
import logging
import time

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from api.dependencies import (
    MAX_TASK_INPUT_CHARS,
    MAX_TRANSCRIPT_CHARS,
    get_repository,
    get_task_extractor,
)
from api.metrics import (
    EXTRACTION_FAILURES_TOTAL,
    EXTRACTIONS_TOTAL,
    REQUEST_LATENCY_SECONDS,
    REQUESTS_TOTAL,
    TASKS_CREATED_TOTAL,
    TASKS_STORED,
)
from extraction.fallback_parser import is_placeholder
from extraction.task_extractor import ExtractionOutcome, TaskExtractor
from smart_tasks.errors import ExtractionFailed, TaskManagerError
from smart_tasks.models import Source
from storage.task_repository import TaskRepository

router = APIRouter()
logger = logging.getLogger(__name__)


class TaskInput(BaseModel):
    input: str = Field(..., max_length=MAX_TASK_INPUT_CHARS)

    @field_validator("input")
    @classmethod
    def input_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Input cannot be empty")
        return v


class TranscriptInput(BaseModel):
    transcript: str = Field(..., max_length=MAX_TRANSCRIPT_CHARS)

    @field_validator("transcript")
    @classmethod
    def transcript_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Transcript cannot be empty")
        return v


def _record_outcome(
    endpoint: str,
    mode: str,
    start: float,
    outcome: ExtractionOutcome,
    source: Source,
    created: int,
    stored: int,
) -> None:
    try:
        EXTRACTIONS_TOTAL.labels(mode=mode, path=outcome.path).inc()
        REQUESTS_TOTAL.labels(endpoint=endpoint, status="created").inc()
        REQUEST_LATENCY_SECONDS.labels(endpoint=endpoint).observe(time.time() - start)
        TASKS_CREATED_TOTAL.labels(source=source.value).inc(created)
        TASKS_STORED.set(stored)
    except Exception:
        pass


def _record_failure(endpoint: str, mode: str, error: TaskManagerError) -> None:
    try:
        EXTRACTION_FAILURES_TOTAL.labels(mode=mode, reason=type(error).__name__).inc()
        REQUESTS_TOTAL.labels(endpoint=endpoint, status="rejected").inc()
    except Exception:
        pass


@router.post("/parse-task")
async def parse_task(
    payload: TaskInput,
    extractor: TaskExtractor = Depends(get_task_extractor),
    repository: TaskRepository = Depends(get_repository),
) -> dict:
    start = time.time()
    logger.info(f"Received task input: {payload.input[:50]}...")

    try:
        # the model call blocks on the network, keep it off the event loop
        outcome = await asyncio.to_thread(extractor.run_one, payload.input)
    except TaskManagerError as e:
        logger.error(f"Task extraction failed: {e.message}")
        _record_failure("/api/parse-task", "single", e)
        raise

    task = repository.create(outcome.bundles[0], Source.SINGLE, payload.input)
    _record_outcome(
        "/api/parse-task", "single", start, outcome, Source.SINGLE, 1, repository.count()
    )

    return {
        "success": True,
        "task": task.public(),
        "message": "Task created successfully",
    }


@router.post("/parse-meeting")
async def parse_meeting(
    payload: TranscriptInput,
    extractor: TaskExtractor = Depends(get_task_extractor),
    repository: TaskRepository = Depends(get_repository),
) -> dict:
    start = time.time()
    logger.info(f"Received transcript ({len(payload.transcript)} chars)")

    try:
        outcome = await asyncio.to_thread(extractor.run_many, payload.transcript)
        if len(outcome.bundles) == 1 and is_placeholder(outcome.bundles[0]):
            raise ExtractionFailed("no action items with an owner could be identified")
    except TaskManagerError as e:
        logger.warning(f"Transcript extraction produced no tasks: {e.message}")
        _record_failure("/api/parse-meeting", "many", e)
        raise

    tasks = repository.create_many(outcome.bundles, Source.MEETING, payload.transcript)
    _record_outcome(
        "/api/parse-meeting", "many", start, outcome, Source.MEETING, len(tasks), repository.count()
    )

    return {
        "success": True,
        "tasks": [t.public() for t in tasks],
        "count": len(tasks),
        "message": f"Created {len(tasks)} task(s) from meeting transcript",
    }
