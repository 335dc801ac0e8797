"""Tests for the JSON logger adapter."""

import logging

from helpcopilot.utils.logger import Logger, logger


def test_singleton():
    assert Logger() is logger


def test_keyword_arguments_become_extra_fields():
    msg, kwargs = logger.process("Created chat session", {"thread_id": "thread_1", "exc_info": True})

    assert msg == "Created chat session"
    assert kwargs == {"extra": {"thread_id": "thread_1"}, "exc_info": True}


def test_set_level():
    original = logging.getLevelName(logger.logger.level)
    try:
        logger.set_level("info")
        assert logger.logger.level == logging.INFO

        logger.set_level("nonsense")
        assert logger.logger.level == logging.WARNING
    finally:
        logger.set_level(original)
