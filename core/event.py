"""
Event handler contract.

A handler is polled once per stream cycle: ``check()`` says whether new
data is ready, ``update()`` produces it.
"""

from abc import ABC, abstractmethod


class EventHandler(ABC):
    """Unit of work polled by a StreamSession."""

    @abstractmethod
    def check(self):
        """Return True when ``update()`` has data to send. No side effects."""

    @abstractmethod
    def update(self):
        """Return the payload for the next message."""


class CallbackHandler(EventHandler):
    """Handler built from two plain callables."""

    def __init__(self, check, update):
        self._check = check
        self._update = update

    def check(self):
        return bool(self._check())

    def update(self):
        return self._update()


class OnceHandler(EventHandler):
    """Sends a single payload, then never reports ready again."""

    def __init__(self, payload):
        self.payload = payload
        self.sent = False

    def check(self):
        return not self.sent

    def update(self):
        self.sent = True
        return self.payload
