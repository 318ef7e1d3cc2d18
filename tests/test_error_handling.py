"""Tests for the error handling helpers."""

import pytest

import error_handling
from error_handling import (
    ClientDisconnectedError,
    ConfigurationError,
    ErrorContext,
    EventPumpError,
    MechanismNotRegisteredError,
    retry_with_backoff,
)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    delays = []
    monkeypatch.setattr(error_handling.time, 'sleep', delays.append)
    return delays


def test_message_includes_suggestion_and_cause():
    error = ClientDisconnectedError(BrokenPipeError("pipe"))
    assert "Client connection lost" in str(error)
    assert "Suggestion:" in str(error)
    assert "Original error: pipe" in str(error)
    assert isinstance(error, EventPumpError)


def test_mechanism_error_lists_available():
    error = MechanismNotRegisteredError('apc', ['cache', 'file'])
    assert isinstance(error, ConfigurationError)
    assert isinstance(error, ValueError)
    assert "cache" in str(error) and "file" in str(error)


def test_retry_eventually_succeeds(no_sleep):
    attempts = []

    @retry_with_backoff(max_attempts=3, initial_delay=0.1, exceptions=(OSError,))
    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise OSError("busy")
        return "ok"

    assert flaky() == "ok"
    assert no_sleep == [0.1, 0.2]


def test_retry_gives_up(no_sleep):
    @retry_with_backoff(max_attempts=2, initial_delay=1.0, exceptions=(OSError,))
    def broken():
        raise OSError("nope")

    with pytest.raises(OSError):
        broken()
    assert no_sleep == [1.0]


def test_retry_ignores_other_exceptions(no_sleep):
    @retry_with_backoff(exceptions=(OSError,))
    def wrong():
        raise KeyError("k")

    with pytest.raises(KeyError):
        wrong()
    assert no_sleep == []


def test_error_context_does_not_swallow():
    with pytest.raises(RuntimeError):
        with ErrorContext("operation"):
            raise RuntimeError("boom")


def test_error_context_measures_duration():
    ticks = iter([10.0, 12.5])
    with ErrorContext("operation", clock=lambda: next(ticks)) as ctx:
        pass
    assert ctx.duration == 2.5
