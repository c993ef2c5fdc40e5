"""Tests for the per-module logger helper."""

import logging

from lead_signal_ai.utils.logger import get_logger


def test_single_stdout_handler_at_info():
    logger = get_logger("lead_signal_ai.tests.logger_once")
    again = get_logger("lead_signal_ai.tests.logger_once")
    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
    assert logger.handlers[0].formatter._fmt == "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def test_explicit_level_wins():
    logger = get_logger("lead_signal_ai.tests.logger_debug", level=logging.DEBUG)
    assert logger.level == logging.DEBUG
    assert get_logger("lead_signal_ai.tests.logger_debug", level=logging.WARNING).level == logging.WARNING
