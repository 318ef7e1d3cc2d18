"""
SSE wire framing.

Pure formatting: every function returns the text for one frame and
leaves writing and flushing to the caller.
"""

import json
import re
import uuid

_LINE_BREAK = re.compile(r'\r\n|\r|\n')


def coerce_payload(data):
    """Turn a handler payload into the text carried on ``data:`` lines."""
    if data is None:
        return ''
    if isinstance(data, str):
        return data
    if isinstance(data, bytes):
        return data.decode('utf-8')
    return json.dumps(data, default=str)


def encode_block(event_id, event, data):
    """
    Frame one message.

    Args:
        event_id: Id written on the ``id:`` line
        event: Event name; the ``event:`` line is omitted when empty
        data: Payload, split so each line gets its own ``data:`` prefix

    Returns:
        str: ``id: ..\\nevent: ..\\ndata: ..\\n\\n``
    """
    parts = [f"id: {event_id}\n"]
    if event:
        parts.append(f"event: {event}\n")
    for line in _LINE_BREAK.split(coerce_payload(data)):
        parts.append(f"data: {line}\n")
    parts.append("\n")
    return ''.join(parts)


def encode_comment(token=None):
    """Comment frame; clients ignore it but it resets proxy idle timers."""
    if token is None:
        token = uuid.uuid4().hex
    return f": {token}\n\n"


def encode_retry(milliseconds):
    """Reconnect backoff directive."""
    return f"retry: {int(milliseconds)}\n"
