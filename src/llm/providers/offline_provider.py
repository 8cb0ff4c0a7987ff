from __future__ import annotations
from .base import LLMProvider

OFFLINE_REPLY = "Offline mode: no language model is configured."


class OfflineProvider(LLMProvider):
    """
    Used when no model endpoint is configured (local runs, demos).

    The reply is deliberately not JSON, so every request ends up on the
    rule-based parser instead of failing outright.
    """

    name = "offline"

    def generate(self, *, system: str, user: str) -> str:
        return OFFLINE_REPLY
