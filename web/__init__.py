"""
Flask application factory for the EventPump example host.
"""

import logging
from flask import Flask

from core.storage import Storage, get_registry
from core.task_manager import TaskManager
from utils.config_manager import ConfigManager
from utils.constants import CONFIG_FILE_PATH
from utils.logging_config import setup_logging


def create_app(config_path=CONFIG_FILE_PATH, registry=None, log_dir=None):
    """
    Create and configure the Flask application.

    Args:
        config_path: config.ini with [Stream] and [Storage] sections
        registry: Storage mechanism registry (defaults to the global one)
        log_dir: When given, log to a timestamped file in this directory
    """
    app = Flask(__name__)
    app.current_log_file = setup_logging(log_dir) if log_dir else None

    config = ConfigManager(config_path)
    app.settings = config.load_settings()
    if app.settings['enable_debug_logging']:
        logging.getLogger().setLevel(logging.DEBUG)

    # App-level globals shared by every stream session
    app.task_manager = TaskManager()

    credentials = {'path': app.settings['path']} if app.settings['path'] else {}
    app.storage = Storage(app.settings['mechanism'], credentials, registry=registry or get_registry())
    logging.info(f"Cursor storage: {app.settings['mechanism']}")

    from web.routes.events import events_bp
    app.register_blueprint(events_bp)

    return app
