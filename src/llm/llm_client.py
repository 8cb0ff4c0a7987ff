import logging
import os
from typing import Optional

from llm.providers.base import LLMProvider
from llm.providers.offline_provider import OfflineProvider
from llm.providers.ollama_provider import OllamaProvider
from llm.providers.openai_provider import OpenAIProvider
from smart_tasks.errors import ModelUnavailable, TaskManagerError

logger = logging.getLogger(__name__)


def build_provider(name: Optional[str] = None) -> LLMProvider:
    """Pick the provider from LLM_PROVIDER; without it, OpenAI if a key is set, else offline."""
    if name is None:
        name = os.getenv("LLM_PROVIDER", "").strip().lower()
    if not name:
        name = "openai" if os.getenv("OPENAI_API_KEY", "").strip() else "offline"

    if name == "openai":
        try:
            return OpenAIProvider()
        except RuntimeError as e:
            logger.warning(f"OpenAI provider unavailable ({e}); using offline provider")
            return OfflineProvider()
    if name == "ollama":
        return OllamaProvider()
    if name == "offline":
        return OfflineProvider()
    raise ValueError(f"Unknown LLM_PROVIDER: {name!r}")


class LLMClient:
    """Single entry point to the language model: instructions + text in, reply text out."""

    def __init__(self, provider: Optional[LLMProvider] = None):
        self.provider = provider if provider is not None else build_provider()

    @property
    def provider_name(self) -> str:
        return getattr(self.provider, "name", type(self.provider).__name__)

    def complete(self, *, system: str, user: str) -> str:
        try:
            text = self.provider.generate(system=system, user=user)
        except TaskManagerError:
            raise
        except Exception as e:
            logger.error(f"LLM provider {self.provider_name} failed: {e}")
            raise ModelUnavailable(f"Language model request failed: {e}") from e

        if not isinstance(text, str):
            raise ModelUnavailable(
                f"Language model returned {type(text).__name__} instead of text"
            )
        return text
