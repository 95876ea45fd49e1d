"""
Shared fixtures: in-memory backends, a controllable clock and a renderer
that records every frame it is asked to draw.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tradieiq.backends.memory import InMemoryAuthGateway, InMemoryJobStore
from tradieiq.config import Config
from tradieiq.core.app_controller import AppController

PASSWORD = "hammer1"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


class RecordingRenderer:
    def __init__(self):
        self.frames = []

    def render(self, view_state, jobs, aggregates):
        self.frames.append((view_state, tuple(jobs), aggregates))


@pytest.fixture
def settings():
    config = Config()
    config.enable_google_sign_in = False
    config.enable_recording = True
    config.min_password_length = 6
    config.notification_ms = 4000
    return config


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def auth():
    return InMemoryAuthGateway()


@pytest.fixture
def store():
    return InMemoryJobStore()


@pytest.fixture
def tom(auth):
    return auth.add_user("tom@example.com", PASSWORD, display_name="Tom Builder")


@pytest.fixture
def sam(auth):
    return auth.add_user("sam@example.com", PASSWORD)


@pytest.fixture
def controller(auth, store, renderer, settings, clock):
    app = AppController(auth=auth, store=store, renderer=renderer, settings=settings, clock=clock)
    app.start()
    yield app
    app.stop()


@pytest.fixture
def signed_in(controller, tom):
    """Controller with tom signed in."""
    outcome = controller.sign_in("tom@example.com", PASSWORD)
    assert outcome.success
    return controller
