import logging

from fastapi import APIRouter, Depends, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api.dependencies import get_repository, get_task_extractor
from api.metrics import TASKS_STORED
from extraction.task_extractor import TaskExtractor
from storage.task_repository import TaskRepository

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(
    repository: TaskRepository = Depends(get_repository),
    extractor: TaskExtractor = Depends(get_task_extractor),
) -> dict:
    """Health check endpoint for container orchestration."""
    return {
        "status": "healthy",
        "tasks": repository.count(),
        "llm_provider": extractor.model_extractor.llm_client.provider_name,
    }


@router.get("/metrics")
async def metrics(repository: TaskRepository = Depends(get_repository)) -> Response:
    """
    Prometheus scrape endpoint.
    """
    try:
        TASKS_STORED.set(repository.count())
    except Exception:
        pass

    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
