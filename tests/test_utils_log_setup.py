"""
Tests for coincheck_adapter/utils/log_setup.py
"""

import logging

import pytest

from coincheck_adapter.utils.log_setup import LOG_FORMAT, configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_configure_logging_installs_one_handler():
    root = configure_logging("DEBUG")
    configure_logging("WARNING")

    ours = [h for h in root.handlers if h.get_name() == "coincheck_adapter.console"]
    assert len(ours) == 1
    assert ours[0].formatter._fmt == LOG_FORMAT
    assert root.level == logging.WARNING


def test_level_name_is_case_insensitive():
    assert configure_logging("info").level == logging.INFO


def test_unknown_level_raises():
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("CHATTY")
