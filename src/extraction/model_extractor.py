from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any, Callable, List, Literal, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from extraction.normalizer import normalize
from llm.llm_client import LLMClient
from llm.prompts import meeting_instructions, single_task_instructions
from llm.schemas import ExtractedTask, TaskExtractionResult
from smart_tasks.errors import MissingRequiredField, UnparsableOutput
from smart_tasks.models import FieldBundle

logger = logging.getLogger(__name__)

Mode = Literal["single", "many"]

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def _load_json(text: str, mode: Mode) -> Any:
    """Parse the reply, tolerating code fences and prose around the JSON payload."""
    candidate = text.strip()
    fenced = _FENCE_RE.search(candidate)
    if fenced:
        candidate = fenced.group(1).strip()

    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    openers = "{" if mode == "single" else "[{"
    for opener in openers:
        closer = "}" if opener == "{" else "]"
        start, end = candidate.find(opener), candidate.rfind(closer)
        if start == -1 or end <= start:
            continue
        try:
            return json.loads(candidate[start : end + 1])
        except json.JSONDecodeError:
            continue

    raise UnparsableOutput("Model reply is not valid JSON", raw=text)


def parse_model_output(text: str, mode: Mode) -> List[ExtractedTask]:
    """Check the reply has the shape asked for: an object (single) or an array of objects (many)."""
    payload = _load_json(text, mode)

    try:
        if mode == "single":
            if not isinstance(payload, dict):
                raise UnparsableOutput(
                    f"Expected a JSON object, got {type(payload).__name__}", raw=text
                )
            return [ExtractedTask.model_validate(payload)]

        if isinstance(payload, dict) and isinstance(payload.get("tasks"), list):
            return TaskExtractionResult.model_validate(payload).tasks
        if not isinstance(payload, list):
            raise UnparsableOutput(
                f"Expected a JSON array, got {type(payload).__name__}", raw=text
            )
        return TaskExtractionResult(tasks=payload).tasks
    except PydanticValidationError as e:
        raise UnparsableOutput(
            f"Model reply is missing required fields: {e.error_count()} error(s)", raw=text
        ) from e


class ModelExtractor:
    """
    Model-based extraction: one request per call, shape-checked and normalized.

    UnparsableOutput is raised for replies that cannot be used;
    ModelUnavailable from the client is left to propagate.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        today: Callable[[], date] = date.today,
    ):
        self.llm_client = llm_client if llm_client is not None else LLMClient()
        self._today = today

    def instructions(self, mode: Mode) -> str:
        if mode == "single":
            return single_task_instructions(self._today())
        return meeting_instructions(self._today())

    def extract(self, text: str, mode: Mode) -> Union[FieldBundle, List[FieldBundle]]:
        reply = self.llm_client.complete(system=self.instructions(mode), user=text)
        items = parse_model_output(reply, mode)

        if mode == "single":
            try:
                return normalize(items[0].model_dump())
            except MissingRequiredField as e:
                raise UnparsableOutput(f"Model reply is missing {e.field}", raw=reply) from e

        bundles: List[FieldBundle] = []
        for item in items:
            try:
                bundles.append(normalize(item.model_dump(), require_assignee=True))
            except MissingRequiredField as e:
                # a nameless item spoils the reply, same as a missing task_name key
                if e.field == "task_name":
                    raise UnparsableOutput(f"Model reply is missing {e.field}", raw=reply) from e
                logger.info(f"Dropping action item {item.task_name!r}: {e.message}")
        return bundles
