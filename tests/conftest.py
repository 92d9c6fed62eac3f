"""Shared test doubles for the itinerary job pipeline."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from itinerary_worker.core.config import Settings
from itinerary_worker.itineraries.models import PROCESSING, TERMINAL_STATUSES


VALID_PAYLOAD = {
    "itinerary": [
        {
            "day": 1,
            "theme": "Historic Paris",
            "activities": [
                {"time": "09:00", "description": "Climb the Eiffel Tower", "location": "Champ de Mars"},
                {"time": "13:00", "description": "Lunch in the Latin Quarter", "location": "Rue Mouffetard"},
            ],
        },
        {
            "day": 2,
            "theme": "Museums",
            "activities": [
                {"time": "Morning", "description": "The Louvre", "location": "Rue de Rivoli"},
            ],
        },
        {"day": 3, "theme": "Rest day", "activities": []},
    ]
}


class InMemoryJobStore:
    """Dict-backed job store applying the same finish-once rule as Mongo."""

    def __init__(self) -> None:
        self.records: Dict[str, dict] = {}
        self.writes: List[tuple] = []

    async def put(self, job_id: str, fields: Dict[str, Any]) -> None:
        self.writes.append((job_id, dict(fields)))
        record = self.records.get(job_id)
        if fields.get("status") in TERMINAL_STATUSES:
            if record is None or record.get("status") != PROCESSING:
                return
        self.records.setdefault(job_id, {}).update(fields)

    async def get(self, job_id: str) -> Optional[dict]:
        record = self.records.get(job_id)
        if record is None:
            return None
        return {**record, "jobId": job_id}


class StubGenerator:
    """Returns a canned result (or raises) instead of calling a model."""

    def __init__(self, outcome=None, error: Optional[Exception] = None) -> None:
        self.outcome = outcome
        self.error = error
        self.calls: List[tuple] = []

    async def generate(self, prompt: str, schema_hint: dict):
        self.calls.append((prompt, schema_hint))
        if self.error is not None:
            raise self.error
        return self.outcome


class RecordingScheduler:
    """Captures dispatches so tests decide when background work runs."""

    def __init__(self) -> None:
        self.dispatched: List[tuple] = []

    def dispatch(self, runner, job_id: str, destination: str, duration_days: int) -> None:
        self.dispatched.append((runner, job_id, destination, duration_days))

    async def drain(self, timeout=None) -> None:
        return None

    async def run_all(self) -> None:
        for runner, job_id, destination, duration_days in self.dispatched:
            await runner(job_id, destination, duration_days)


class FakeCompletions:
    """Stand-in for ``AsyncOpenAI().chat.completions``."""

    def __init__(self, responses: list) -> None:
        self.responses = list(responses)
        self.calls: List[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def completion(content: Optional[str]):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def fake_openai(responses: list):
    completions = FakeCompletions(responses)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


@pytest.fixture
def settings() -> Settings:
    return Settings(OPENAI_API_KEY="test-key", OPENAI_MODEL="test-model")


@pytest.fixture
def store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
