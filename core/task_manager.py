"""
Background task manager with an event log for SSE delivery.

Spawns background threads for long operations and records their
outcomes in an append-only EventLog. Stream sessions poll the log
through EventLogHandler, which remembers per-client progress in a
storage mechanism so reconnecting clients pick up where they left off.
"""

import threading
import uuid
import time
import logging
from collections import deque

from core.event import EventHandler
from utils.constants import DEFAULT_EVENT_LOG_SIZE, TASK_COMPLETE_EVENT


class EventLog:
    """Thread-safe bounded log of events with increasing sequence numbers."""

    def __init__(self, maxlen=DEFAULT_EVENT_LOG_SIZE):
        self._lock = threading.Lock()
        self._entries = deque(maxlen=maxlen)
        self._seq = 0

    def append(self, event_type, data):
        """Record an event and return its sequence number."""
        with self._lock:
            self._seq += 1
            self._entries.append({
                'seq': self._seq,
                'event': event_type,
                'data': data,
                'time': time.time(),
            })
            return self._seq

    def latest_seq(self):
        with self._lock:
            return self._seq

    def since(self, seq, event_type=None):
        """Entries after ``seq``, oldest first, optionally of one type."""
        with self._lock:
            return [
                entry for entry in self._entries
                if entry['seq'] > seq and (event_type is None or entry['event'] == event_type)
            ]


class EventLogHandler(EventHandler):
    """
    Streams entries of one event type from an EventLog, one per message.

    The cursor (last delivered sequence number) is kept in ``storage``
    under ``cursor_key`` when both are given. Without a stored cursor the
    handler starts at the log's current end, so only new events are sent.
    """

    def __init__(self, log, event_type, storage=None, cursor_key=None):
        self.log = log
        self.event_type = event_type
        self.storage = storage if cursor_key else None
        self.cursor_key = cursor_key

        cursor = self.storage.get(cursor_key) if self.storage else None
        self.cursor = int(cursor) if cursor is not None else log.latest_seq()

    def check(self):
        return bool(self.log.since(self.cursor, self.event_type))

    def update(self):
        pending = self.log.since(self.cursor, self.event_type)
        if not pending:
            return None
        entry = pending[0]
        self.cursor = entry['seq']
        if self.storage:
            self.storage.set(self.cursor_key, self.cursor)
        return entry['data']


class TaskManager:
    """Manages background tasks and publishes their outcomes."""

    def __init__(self, log=None):
        self._tasks = {}  # {task_id: {type, status, result, error}}
        self._lock = threading.Lock()
        self.log = log or EventLog()

    def submit(self, task_type, callable_fn, **kwargs):
        """
        Submit a background task.

        Args:
            task_type: String identifying the task type
            callable_fn: Function to run in background thread
            **kwargs: Passed to callable_fn

        Returns:
            tuple: (task_id, thread)
        """
        task_id = str(uuid.uuid4())[:8]

        with self._lock:
            self._tasks[task_id] = {
                'type': task_type,
                'status': 'running',
                'result': None,
                'error': None,
            }

        def wrapper():
            try:
                result = callable_fn(**kwargs)
                with self._lock:
                    self._tasks[task_id]['status'] = 'complete'
                    self._tasks[task_id]['result'] = result
                self.emit(TASK_COMPLETE_EVENT, {
                    'task_id': task_id,
                    'task_type': task_type,
                    'success': True,
                    'result': result,
                })
            except Exception as e:
                logging.error(f"Task {task_id} ({task_type}) failed: {e}")
                with self._lock:
                    self._tasks[task_id]['status'] = 'error'
                    self._tasks[task_id]['error'] = str(e)
                self.emit(TASK_COMPLETE_EVENT, {
                    'task_id': task_id,
                    'task_type': task_type,
                    'success': False,
                    'error': str(e),
                })

        thread = threading.Thread(target=wrapper, daemon=True)
        thread.start()
        return task_id, thread

    def get_task(self, task_id):
        """Get task status and result."""
        with self._lock:
            return self._tasks.get(task_id)

    def emit(self, event_type, data):
        """Append an event to the log and return its sequence number."""
        return self.log.append(event_type, data)

    def listener(self, event_type=TASK_COMPLETE_EVENT, storage=None, cursor_key=None):
        """EventLogHandler over this manager's log."""
        return EventLogHandler(self.log, event_type, storage=storage, cursor_key=cursor_key)
