"""
Tests for the structlog setup in mindloop.core.log.
"""
import logging

import pytest
import structlog

from mindloop.core.log import configure_logging, get_logger


@pytest.fixture()
def root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


def _ours(root):
    return [h for h in root.handlers if h.get_name() == "mindloop"]


class TestConfigureLogging:
    def test_installs_one_handler_across_calls(self, root_logger):
        configure_logging("DEBUG")
        configure_logging("WARNING", json_logs=True)

        handlers = _ours(root_logger)
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert root_logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, root_logger):
        configure_logging("chatty")
        assert root_logger.level == logging.INFO

    def test_events_carry_context(self, root_logger, caplog):
        configure_logging("INFO")
        with caplog.at_level(logging.INFO):
            get_logger("mindloop.tests").info("habit_logged", habit_id=3, progress="1/2")

        record = next(r for r in caplog.records if r.name == "mindloop.tests")
        assert record.msg["event"] == "habit_logged"
        assert record.msg["habit_id"] == 3
        assert record.msg["progress"] == "1/2"
