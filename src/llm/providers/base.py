from __future__ import annotations
from abc import ABC, abstractmethod

class LLMProvider(ABC):
    name: str = "base"

    @abstractmethod
    def generate(self, *, system: str, user: str) -> str:
        """
        Send the instructions (system) and the user's text, return the raw reply TEXT.
        Parsing and validation happen in the extraction layer.
        Transport errors are raised as-is; LLMClient turns them into ModelUnavailable.
        """
        raise NotImplementedError
