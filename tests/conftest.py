# tests/conftest.py
import logging
from collections.abc import Callable
from typing import Any, Optional

import httpx
import pytest

from course_engine.core.config import Settings

# Configure logging for tests
logging.basicConfig(level=logging.INFO)

BASE_URL = "http://service.test"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url=BASE_URL,
        supabase_anon_key="test-key",
        sync_max_attempts=3,
        sync_base_delay_seconds=1.0,
    )


class RecordingSleep:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


class FakeService:
    """Scripted HTTP handler: pops one response per request, records requests."""

    def __init__(self, responses: Optional[list[Any]] = None):
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(201)
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if callable(outcome):
            return outcome(request)
        return outcome

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def fake_service() -> Callable[..., FakeService]:
    return FakeService
