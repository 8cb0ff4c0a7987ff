"""Rule-based parser used when the model reply cannot be used.

Both entry points are pure. No dates or times are extracted here: the
fallback gives up recall to stay deterministic.
"""

from __future__ import annotations

import re
from typing import List, Optional

from extraction.normalizer import normalize
from smart_tasks.models import FieldBundle, Priority

PLACEHOLDER_TASK_NAME = "Review meeting transcript"

_TASK_NAME_RE = re.compile(r"^(.+?)(?:\s+(?:by|for|with|to)\s+|$)", re.IGNORECASE | re.DOTALL)
_ASSIGNEE_RE = re.compile(
    r"\b(?:for|with|to|assign(?:ed)?(?:\s+to)?)\s+([A-Za-z]+)", re.IGNORECASE
)
_PRIORITY_RE = re.compile(r"\b(P[1-4]|priority\s*[1-4])\b", re.IGNORECASE)

_SPAN_SPLIT_RE = re.compile(r"(?<=[.!?;])\s+|\n+")
_ACTION_RE = re.compile(
    r"\b([A-Z][A-Za-z'-]*)\s*[,:]?\s+"
    r"(?i:(you|should|need\s+to|please|take|handle|do|complete))\b\s*(.*)",
    re.DOTALL,
)
_ACTION_VERBS = {"take", "handle", "do", "complete"}
_LEADING_FILLER_RE = re.compile(
    r"^(?:you\s+|should\s+|need\s+to\s+|please\s+|will\s+|can\s+|could\s+|must\s+)+",
    re.IGNORECASE,
)
_NOT_NAMES = {
    "I", "We", "You", "They", "He", "She", "It", "Everyone", "Everybody",
    "Someone", "Somebody", "Anyone", "Please", "Also", "And", "So", "Then",
    "Ok", "Okay", "Let", "Can", "Could", "Would", "Will", "Should",
}


def _priority_from(text: str) -> Priority:
    match = _PRIORITY_RE.search(text)
    if not match:
        return Priority.P3
    return Priority(f"P{match.group(1)[-1]}")


def fallback_single(text: str) -> FieldBundle:
    """Task name up to the first by/for/with/to, assignee after it, priority token if any."""
    stripped = text.strip()

    task_name = stripped
    name_match = _TASK_NAME_RE.match(stripped)
    if name_match:
        task_name = name_match.group(1).strip()

    assignee: Optional[str] = None
    assignee_match = _ASSIGNEE_RE.search(stripped)
    if assignee_match:
        assignee = assignee_match.group(1)

    return normalize(
        {
            "task_name": task_name,
            "assignee": assignee,
            "priority": _priority_from(stripped),
        }
    )


def _clean_action(keyword: str, rest: str) -> str:
    rest = _LEADING_FILLER_RE.sub("", rest.strip())
    if keyword.lower() in _ACTION_VERBS:
        rest = f"{keyword.lower()} {rest}"
    return rest.strip().rstrip(".!?;,").strip()


def _match_span(span: str) -> Optional[FieldBundle]:
    pos = 0
    while True:
        match = _ACTION_RE.search(span, pos)
        if match is None:
            return None
        name, keyword, rest = match.groups()
        # rest swallows the span, so retry from the next character after a rejected name
        pos = match.start() + 1
        if name in _NOT_NAMES:
            continue
        task_name = _clean_action(keyword, rest)
        if not task_name:
            continue
        task_name = task_name[0].upper() + task_name[1:]
        return normalize({"task_name": task_name, "assignee": name, "priority": Priority.P3})


def fallback_many(transcript: str) -> List[FieldBundle]:
    """
    One task per '<Name> (you|should|need to|please|take|handle|do|complete) <rest>' span.

    With no match at all a single placeholder task is returned (see
    `is_placeholder`); it means "nothing could be extracted", not a real task.
    """
    bundles: List[FieldBundle] = []
    for span in _SPAN_SPLIT_RE.split(transcript):
        span = span.strip()
        if not span:
            continue
        bundle = _match_span(span)
        if bundle is not None:
            bundles.append(bundle)

    if not bundles:
        return [normalize({"task_name": PLACEHOLDER_TASK_NAME, "assignee": None})]
    return bundles


def is_placeholder(bundle: FieldBundle) -> bool:
    return bundle.task_name == PLACEHOLDER_TASK_NAME and bundle.assignee is None
