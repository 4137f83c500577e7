from __future__ import annotations

import logging
import logging.handlers
import sys

import pytest

from quota_watcher import logging_config


@pytest.fixture
def clean_root_logger():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    for handler in saved_handlers:
        root.removeHandler(handler)

    yield root

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


def test_console_only_by_default(clean_root_logger):
    logging_config.setup_logging()

    handlers = clean_root_logger.handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.StreamHandler)
    assert handlers[0].stream is sys.stdout
    assert handlers[0].level == logging.DEBUG
    assert clean_root_logger.level == logging.INFO


def test_user_friendly_console_uses_bare_messages(clean_root_logger):
    logging_config.setup_logging(user_friendly=True)

    console = clean_root_logger.handlers[0]
    assert console.level == logging.INFO
    assert console.formatter._fmt == "%(message)s"


def test_debug_flag_lowers_root_level(clean_root_logger):
    logging_config.setup_logging(debug=True)

    assert clean_root_logger.level == logging.DEBUG


def test_file_handler_uses_log_dir(clean_root_logger, monkeypatch, tmp_path):
    log_dir = tmp_path / "custom_logs"
    monkeypatch.setenv("QUOTA_WATCHER_LOG_DIR", str(log_dir))

    logging_config.setup_logging("quota_watcher")

    file_handlers = [h for h in clean_root_logger.handlers if isinstance(h, logging.handlers.WatchedFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].baseFilename == str(log_dir / "quota_watcher.log")
    assert file_handlers[0].mode == "w"
    assert file_handlers[0].level == logging.INFO


def test_file_handler_appends_when_requested(clean_root_logger, monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_APPEND", "true")

    logging_config.setup_logging("watcher")

    file_handler = clean_root_logger.handlers[-1]
    assert file_handler.baseFilename == str(tmp_path / "logs" / "watcher.log")
    assert file_handler.mode == "a"


def test_setup_replaces_previous_handlers(clean_root_logger):
    stale = logging.NullHandler()
    clean_root_logger.addHandler(stale)

    logging_config.setup_logging()
    logging_config.setup_logging()

    assert stale not in clean_root_logger.handlers
    assert len(clean_root_logger.handlers) == 1


def test_third_party_loggers_are_quieted(clean_root_logger):
    logging.getLogger("aiohttp").setLevel(logging.DEBUG)

    logging_config.setup_logging()

    assert logging.getLogger("aiohttp").level == logging.WARNING
    assert logging.getLogger("asyncio").level == logging.WARNING
