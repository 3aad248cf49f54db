import logging

import pytest

from framemark.services.logging_service import get_logger, reset_logging, setup_logging


@pytest.fixture(autouse=True)
def clean_logging():
    reset_logging()
    yield
    reset_logging()


def test_setup_writes_dated_file(tmp_path):
    setup_logging(logging.DEBUG, log_dir=tmp_path)
    get_logger("framemark.test").info("hello from the test")

    for handler in logging.getLogger().handlers:
        handler.flush()

    [log_file] = list(tmp_path.glob("framemark_*.log"))
    assert "framemark.test - INFO - hello from the test" in log_file.read_text()


def test_setup_is_idempotent(tmp_path):
    setup_logging(log_dir=tmp_path)
    handlers = list(logging.getLogger().handlers)

    setup_logging(log_dir=tmp_path)

    assert logging.getLogger().handlers == handlers


def test_console_only(tmp_path):
    setup_logging(log_to_file=False, log_dir=tmp_path)

    assert len(logging.getLogger().handlers) == 1
    assert list(tmp_path.iterdir()) == []
