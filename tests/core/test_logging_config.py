"""
Unit tests for logging configuration.
"""
import logging
from logging.handlers import QueueHandler

from app.core import logging_config
from app.core.logging_config import MaxLevelFilter, setup_logging


def _record(level: int) -> logging.LogRecord:
    return logging.LogRecord("test", level, __file__, 1, "msg", None, None)


class TestMaxLevelFilter:
    """Tests for MaxLevelFilter"""

    def test_passes_up_to_max_level(self):
        f = MaxLevelFilter(logging.WARNING)
        assert f.filter(_record(logging.INFO)) is True
        assert f.filter(_record(logging.WARNING)) is True
        assert f.filter(_record(logging.ERROR)) is False


class TestSetupLogging:
    """Tests for setup_logging function"""

    def test_installs_single_queue_handler(self):
        setup_logging()
        setup_logging()

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], QueueHandler)
        assert logging_config._log_listener is not None
        assert logging.getLogger("aiohttp.access").level == logging.WARNING
