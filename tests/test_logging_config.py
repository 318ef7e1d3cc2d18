"""Tests for logging setup."""

import logging
import os

import pytest

from utils.logging_config import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_writes_banner_to_timestamped_file(tmp_path, restore_root_logger):
    log_file = setup_logging(str(tmp_path / 'logs'), level=logging.DEBUG)

    assert os.path.dirname(log_file) == str(tmp_path / 'logs')
    assert os.path.basename(log_file).startswith('eventpump_')
    assert restore_root_logger.level == logging.DEBUG
    with open(log_file, encoding='utf-8') as f:
        assert "EventPump v1.0.0 - Session Started" in f.read()


def test_app_factory_sets_up_logging(tmp_path, restore_root_logger):
    from core.storage import MechanismRegistry
    from web import create_app

    app = create_app(config_path=str(tmp_path / 'config.ini'), registry=MechanismRegistry(),
                     log_dir=str(tmp_path / 'logs'))
    assert app.current_log_file and os.path.exists(app.current_log_file)
