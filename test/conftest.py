from datetime import date, datetime, timedelta

import pytest

from extraction.model_extractor import ModelExtractor
from extraction.task_extractor import TaskExtractor
from llm.llm_client import LLMClient
from storage.task_repository import TaskRepository

TODAY = date(2024, 6, 1)


class FakeProvider:
    name = "fake"

    def __init__(self, response_text: str):
        self._response_text = response_text
        self.calls = []

    def generate(self, *, system: str, user: str) -> str:
        self.calls.append((system, user))
        return self._response_text


class FailingProvider:
    name = "failing"

    def __init__(self, error: Exception):
        self._error = error

    def generate(self, *, system: str, user: str) -> str:
        raise self._error


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def fake_provider_factory():
    def _make(response_text: str):
        return FakeProvider(response_text)
    return _make


@pytest.fixture
def failing_provider_factory():
    def _make(error: Exception):
        return FailingProvider(error)
    return _make


@pytest.fixture
def extractor_factory():
    """TaskExtractor wired to a given provider, with 'today' pinned to TODAY."""
    def _make(provider):
        model = ModelExtractor(LLMClient(provider=provider), today=lambda: TODAY)
        return TaskExtractor(model)
    return _make


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 1, 10, 0))


@pytest.fixture
def repository(clock):
    return TaskRepository(clock=clock)
