"""Shared fixtures for EventPump tests."""

import pytest

from core.event import EventHandler
from core.storage import MechanismRegistry, StorageMechanism
from utils.clock import ManualClock


class FakeRequest:
    """Anything with a ``headers`` mapping can seed a StreamSession."""

    def __init__(self, headers=None):
        self.headers = headers or {}


class DictMechanism(StorageMechanism):
    """In-test storage mechanism backed by a plain dict."""

    def __init__(self, credentials=None):
        super().__init__(credentials)
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


class CountingHandler(EventHandler):
    """Ready for the first ``times`` checks, then idle."""

    def __init__(self, times=1, payload="hello"):
        self.times = times
        self.payload = payload
        self.checks = 0
        self.updates = 0

    def check(self):
        self.checks += 1
        return self.updates < self.times

    def update(self):
        self.updates += 1
        return self.payload


class IdleHandler(EventHandler):
    """Never has anything to send."""

    def __init__(self):
        self.checks = 0

    def check(self):
        self.checks += 1
        return False

    def update(self):
        raise AssertionError("update() called on an idle handler")


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def make_session(clock):
    """Build a StreamSession driven by the manual clock."""
    from core.session import StreamSession

    def factory(headers=None, **settings):
        return StreamSession(FakeRequest(headers), settings=settings, clock=clock, sleep=clock.sleep)

    return factory


@pytest.fixture
def registry():
    """A fresh registry so tests don't share registrations."""
    return MechanismRegistry()


@pytest.fixture
def app(tmp_path):
    from web import create_app

    flask_app = create_app(config_path=str(tmp_path / "config.ini"), registry=MechanismRegistry())
    flask_app.testing = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
