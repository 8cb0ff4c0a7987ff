from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Literal, Optional

from extraction.fallback_parser import fallback_many, fallback_single
from extraction.model_extractor import ModelExtractor
from smart_tasks.errors import (
    ExtractionFailed,
    MissingRequiredField,
    NoTasksFound,
    TaskManagerError,
    UnparsableOutput,
)
from smart_tasks.models import FieldBundle

logger = logging.getLogger(__name__)

ExtractionPath = Literal["model", "fallback"]


@dataclass(frozen=True)
class ExtractionOutcome:
    """Bundles produced by one call, and which path produced them."""

    bundles: List[FieldBundle] = field(default_factory=list)
    path: ExtractionPath = "model"


class TaskExtractor:
    """
    Extraction engine: try the model first, fall back to the rule-based
    parser only when the model reply is unusable (UnparsableOutput).

    Any other failure, including an unreachable model, becomes
    ExtractionFailed. Size limits on the input are the caller's job.
    """

    def __init__(self, model_extractor: Optional[ModelExtractor] = None):
        self.model_extractor = model_extractor if model_extractor is not None else ModelExtractor()

    def extract_one(self, text: str) -> FieldBundle:
        return self.run_one(text).bundles[0]

    def extract_many(self, transcript: str) -> List[FieldBundle]:
        return self.run_many(transcript).bundles

    def run_one(self, text: str) -> ExtractionOutcome:
        try:
            bundle = self.model_extractor.extract(text, "single")
            return ExtractionOutcome(bundles=[bundle], path="model")
        except UnparsableOutput as e:
            logger.warning(f"Model output unusable ({e.message}); using rule-based parser")
        except TaskManagerError as e:
            raise ExtractionFailed(e.message) from e

        try:
            bundle = fallback_single(text)
        except MissingRequiredField as e:
            raise ExtractionFailed("no task name could be identified") from e
        return ExtractionOutcome(bundles=[bundle], path="fallback")

    def run_many(self, transcript: str) -> ExtractionOutcome:
        try:
            bundles = self.model_extractor.extract(transcript, "many")
        except UnparsableOutput as e:
            logger.warning(f"Model output unusable ({e.message}); using rule-based parser")
            return ExtractionOutcome(bundles=fallback_many(transcript), path="fallback")
        except TaskManagerError as e:
            raise ExtractionFailed(e.message) from e

        if not bundles:
            raise NoTasksFound()
        logger.info(f"Extracted {len(bundles)} action item(s) from transcript")
        return ExtractionOutcome(bundles=list(bundles), path="model")
