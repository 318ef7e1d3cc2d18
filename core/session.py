"""
Streaming session controller.

One StreamSession serves one client connection. It owns the event id
counter, the reconnect flag, the registered event handlers and the poll
loop that turns handler output into SSE frames.

The loop runs until there are no handlers left, the execution limit is
exceeded, the client goes away or a handler fails. Clients reconnect on
their own and send Last-Event-ID, so a new session picks the id sequence
up where the previous one stopped.
"""

import logging
import re
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

from flask import Response, has_request_context, stream_with_context
from flask import request as flask_request
from werkzeug.datastructures import Headers

from core.event import EventHandler
from core.framer import encode_block, encode_comment, encode_retry
from core.stream_config import StreamConfig
from error_handling import ClientDisconnectedError, ErrorContext
from utils.clock import time_diff, interval_slot
from utils.constants import LAST_EVENT_ID_HEADER, EVENT_STREAM_MIMETYPE


class SessionState(Enum):
    ACTIVE = 'active'
    TERMINATED = 'terminated'


class Termination(Enum):
    NO_LISTENERS = 'no_listeners'
    TIME_LIMIT = 'time_limit'
    CLIENT_DISCONNECTED = 'client_disconnected'
    HANDLER_ERROR = 'handler_error'


def _current_request():
    """The active Flask request, or None outside a request context."""
    if has_request_context():
        return flask_request._get_current_object()
    logging.debug("No request context; streaming without Last-Event-ID")
    return None


_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def _parse_event_id(value) -> int:
    """Leading integer of the header value; 0 when there is none."""
    if value is None:
        return 0
    match = _LEADING_INT.match(str(value))
    if not match:
        logging.warning(f"Ignoring malformed {LAST_EVENT_ID_HEADER} header: {value!r}")
        return 0
    if match.end() != len(str(value).rstrip()):
        logging.warning(f"Using leading integer of {LAST_EVENT_ID_HEADER} header: {value!r}")
    return int(match.group(1))


class StreamSession:
    """
    Polls event handlers and streams their output as Server-Sent Events.

    Args:
        request: Object with a ``headers`` mapping; defaults to the active
            Flask request
        settings: Stream settings (see StreamConfig), e.g. from ConfigManager
        clock: Returns the current time in seconds (default time.monotonic)
        sleep: Pauses between cycles (default time.sleep)
    """

    def __init__(self, request=None, settings: Optional[Dict[str, Any]] = None,
                 clock: Optional[Callable[[], float]] = None,
                 sleep: Optional[Callable[[float], None]] = None):
        if request is None:
            request = _current_request()
        headers = Headers(getattr(request, 'headers', None) or {})
        last_event_id = headers.get(LAST_EVENT_ID_HEADER)

        self._id = _parse_event_id(last_event_id)
        self.config = StreamConfig.from_settings(settings, is_reconnect=last_event_id is not None)
        self._handlers: Dict[str, EventHandler] = {}
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep
        self._heartbeat_slot = -1

        self.state = SessionState.ACTIVE
        self.termination_reason: Optional[Termination] = None

    # ==================== HANDLERS ====================

    def add_event_listener(self, event: str, handler: EventHandler) -> None:
        """Attach ``handler`` under ``event``, replacing any existing one."""
        self._handlers[event] = handler

    def remove_event_listener(self, event: str) -> None:
        self._handlers.pop(event, None)

    def get_event_listeners(self) -> Dict[str, EventHandler]:
        """The live handler map; changes show up on the next cycle."""
        return self._handlers

    def has_event_listener(self) -> bool:
        return len(self._handlers) != 0

    # ==================== IDS ====================

    @property
    def last_id(self) -> int:
        return self._id

    def get_new_id(self) -> int:
        self._id += 1
        return self._id

    # ==================== CONFIG ====================

    @property
    def is_reconnect(self) -> bool:
        return self.config.is_reconnect

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.config.set(key, value)

    def remove(self, key: str) -> None:
        self.config.remove(key)

    def __getitem__(self, key):
        return self.config[key]

    def __setitem__(self, key, value):
        self.config[key] = value

    def __delitem__(self, key):
        del self.config[key]

    def __contains__(self, key):
        return key in self.config

    # ==================== LOOP ====================

    def _heartbeat_slot_for(self, elapsed: float) -> int:
        return interval_slot(0, self.config.keep_alive_time, now=elapsed)

    def is_heartbeat_due(self, elapsed: float) -> bool:
        """
        True on the first cycle at or after each whole multiple of
        keep_alive_time, including elapsed 0. A keep_alive_time of 0
        disables heartbeats.
        """
        slot = self._heartbeat_slot_for(elapsed)
        return slot >= 0 and slot > self._heartbeat_slot

    def is_expired(self, elapsed: float) -> bool:
        limit = self.config.exec_limit
        return limit != 0 and elapsed > limit

    def _terminate(self, reason: Termination) -> None:
        self.state = SessionState.TERMINATED
        self.termination_reason = reason
        logging.info(f"Stream session ended ({reason.value}) at event id {self._id}")

    def stream(self):
        """
        Run the poll loop, yielding SSE text. Each chunk is one flush unit.

        Handler exceptions end the session and propagate.
        """
        self.state = SessionState.ACTIVE
        self.termination_reason = None
        self._heartbeat_slot = -1
        start = self._clock()
        logging.debug(f"Stream session started (last id {self._id}, reconnect={self.is_reconnect})")

        try:
            yield encode_retry(self.config.client_reconnect * 1000)

            while True:
                if not self.has_event_listener():
                    self._terminate(Termination.NO_LISTENERS)
                    return

                elapsed = time_diff(start, clock=self._clock)
                if self.is_heartbeat_due(elapsed):
                    self._heartbeat_slot = self._heartbeat_slot_for(elapsed)
                    yield encode_comment()

                for event, handler in list(self._handlers.items()):
                    # Removed or replaced earlier in this cycle
                    if self._handlers.get(event) is not handler:
                        continue
                    try:
                        if not handler.check():
                            continue
                        data = handler.update()
                    except Exception as e:
                        logging.error(f"Event handler '{event}' failed: {e}")
                        self._terminate(Termination.HANDLER_ERROR)
                        raise
                    yield encode_block(self.get_new_id(), event, data)

                if self.is_expired(time_diff(start, clock=self._clock)):
                    self._terminate(Termination.TIME_LIMIT)
                    return

                self._sleep(self.config.sleep_time)
        except GeneratorExit:
            self._terminate(Termination.CLIENT_DISCONNECTED)
            raise

    def send(self, write: Callable[[Any], Any], flush: Optional[Callable[[], Any]] = None,
             encoding: Optional[str] = 'utf-8') -> None:
        """
        Drive the loop through a host's write/flush functions.

        Chunks are encoded with ``encoding`` (pass None to write text).
        A failing write or flush ends the session; it is not retried.

        Raises:
            ClientDisconnectedError: write or flush raised OSError
        """
        frames = self.stream()
        with ErrorContext(f"stream session from id {self._id}", clock=self._clock):
            try:
                for chunk in frames:
                    try:
                        write(chunk.encode(encoding) if encoding else chunk)
                        if flush is not None:
                            flush()
                    except OSError as e:
                        logging.info(f"Client disconnected: {e}")
                        frames.close()
                        raise ClientDisconnectedError(e) from e
            finally:
                frames.close()

    def create_response(self) -> Response:
        """Flask streaming response carrying this session's event stream."""
        body = self.stream()
        if has_request_context():
            body = stream_with_context(body)

        response = Response(body, status=200, content_type=EVENT_STREAM_MIMETYPE, headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',  # Disables proxy buffering on nginx
        })

        if self.config.allow_cors:
            response.headers['Access-Control-Allow-Origin'] = '*'
            response.headers['Access-Control-Allow-Credentials'] = 'true'

        if self.config.use_chunked_encoding:
            response.headers['Transfer-Encoding'] = 'chunked'

        return response
