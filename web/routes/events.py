"""SSE (Server-Sent Events) routes."""

from flask import Blueprint, current_app, jsonify, request

from core.session import StreamSession
from utils.constants import TASK_COMPLETE_EVENT

events_bp = Blueprint('events', __name__)


@events_bp.route('/events')
def event_stream():
    """
    SSE endpoint - streams task outcomes.

    Query params:
        client: Stable client id; when given, delivery progress is kept in
            storage so a reconnect resumes after the last delivered task.
    """
    session = StreamSession(request, settings=current_app.settings)

    client_id = request.args.get('client')
    cursor_key = f"cursor:{client_id}" if client_id else None
    session.add_event_listener(
        TASK_COMPLETE_EVENT,
        current_app.task_manager.listener(storage=current_app.storage, cursor_key=cursor_key),
    )

    return session.create_response()


@events_bp.route('/tasks', methods=['POST'])
def submit_task():
    """Submit a task that echoes its message back over /events."""
    data = request.get_json(silent=True) or {}
    task_id, _ = current_app.task_manager.submit(
        'echo', lambda message: message, message=data.get('message', '')
    )
    return jsonify({'task_id': task_id}), 202
