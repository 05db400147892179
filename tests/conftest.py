"""Shared fixtures: a service with a ticking clock and an API client bound to it."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_service
from api.main import app
from dispatch.queue import JobQueue
from lifecycle.service import PodcastService
from models.data import CreatePodcast, PodcastDuration
from storage.repository import PodcastRepository

NOTES = (
    "Machine learning models learn statistical patterns from data. "
    "Today we look at how gradient descent nudges parameters toward lower loss."
)


class TickingClock:
    """Each call returns a time one minute after the previous one."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def service(clock):
    return PodcastService(
        repository=PodcastRepository(),
        queue=JobQueue(),
        clock=clock,
    )


@pytest.fixture
def notes():
    return NOTES


@pytest.fixture
def make_request():
    def _make(**overrides) -> CreatePodcast:
        fields = {"note_content": NOTES, "duration": PodcastDuration.SHORT}
        fields.update(overrides)
        return CreatePodcast(**fields)

    return _make


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
