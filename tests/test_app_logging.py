"""Tests for logging configuration."""

import logging

from checkout_demo.app_logging import LOGGER_NAME, configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()

    first = configure_logging()
    first_count = len(logger.handlers)

    configure_logging()
    second_count = len(logger.handlers)

    assert first is logger
    assert first_count == 1
    assert second_count == 1
    assert logger.propagate is False


def test_configure_logging_applies_level_names() -> None:
    logger = logging.getLogger(LOGGER_NAME)

    configure_logging("debug")
    assert logger.level == logging.DEBUG

    configure_logging(logging.WARNING)
    assert logger.level == logging.WARNING

    configure_logging()
    assert logger.level == logging.INFO
