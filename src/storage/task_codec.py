from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import BaseModel

from extraction.normalizer import clean_text, normalize
from smart_tasks.errors import MissingRequiredField
from smart_tasks.models import ExportSnapshot, ImportResult, Source
from storage.task_repository import TaskRepository, TaskSeed

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


def _pick(item: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in item:
            return item[key]
    return None


def _to_source(value: Any) -> Source:
    if isinstance(value, Source):
        return value
    try:
        return Source(str(value).strip().lower())
    except ValueError:
        return Source.SINGLE


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    return bool(value)


def _to_tags(value: Any) -> List[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return []
    return [t for t in (clean_text(v) for v in value) if t]


def _to_seed(item: Any) -> Optional[TaskSeed]:
    if isinstance(item, BaseModel):
        item = item.model_dump(mode="json", by_alias=True)
    if not isinstance(item, Mapping):
        return None
    try:
        bundle = normalize(item)
    except MissingRequiredField:
        return None

    return TaskSeed(
        bundle=bundle,
        source=_to_source(_pick(item, "source")),
        original_input=clean_text(_pick(item, "originalInput", "original_input")) or "",
        completed=_to_bool(_pick(item, "completed")),
        tags=_to_tags(_pick(item, "tags")),
        notes=clean_text(_pick(item, "notes")) or "",
    )


def export_tasks(repo: TaskRepository) -> ExportSnapshot:
    tasks = sorted(repo.all(), key=lambda r: r.id)
    return ExportSnapshot(
        export_date=repo.now(),
        version=EXPORT_VERSION,
        task_count=len(tasks),
        tasks=tasks,
    )


def import_tasks(repo: TaskRepository, items: Iterable[Any], replace: bool = False) -> ImportResult:
    """
    Best-effort import of task-like objects.

    Entries that are not objects or have no task name are skipped and
    counted. Ids and timestamps are always assigned fresh; `replace`
    wipes the repository (and resets ids) in the same locked step.
    """
    seeds: List[TaskSeed] = []
    skipped = 0
    for item in items:
        seed = _to_seed(item)
        if seed is None:
            skipped += 1
            continue
        seeds.append(seed)

    total = repo.restore(seeds, replace=replace)
    logger.info(
        f"Imported {len(seeds)} task(s), skipped {skipped} (replace={replace}, total={total})"
    )
    return ImportResult(imported_count=len(seeds), skipped_count=skipped, total_tasks=total)
