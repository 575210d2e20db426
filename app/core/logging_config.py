# -*- coding: utf-8 -*-
"""
Process logging configuration.

Severity routing for container platforms:
- DEBUG, INFO, WARNING → STDOUT
- ERROR, CRITICAL → STDERR

Records are handed to a QueueListener thread so a slow stdout never stalls the
event loop that serves webhooks and polls Telegram.
"""

import atexit
import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("aiohttp.access", "aiogram.event", "httpx")


class MaxLevelFilter(logging.Filter):
    """Pass only records at or below ``max_level``."""

    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


_log_listener: QueueListener | None = None


def setup_logging(level: int = logging.INFO) -> None:
    """
    Install the queue-backed root handler.

    Must run before the first logger emits. Calling it again replaces the
    previous listener.
    """
    global _log_listener

    _stop_log_listener()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)

    log_queue: queue.Queue = queue.Queue()
    root_logger.addHandler(QueueHandler(log_queue))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _log_listener = QueueListener(
        log_queue,
        stdout_handler,
        stderr_handler,
        respect_handler_level=True,
    )
    _log_listener.start()
    atexit.register(_stop_log_listener)


def _stop_log_listener() -> None:
    """Flush and stop the listener thread."""
    global _log_listener
    if _log_listener is not None:
        _log_listener.stop()
        _log_listener = None
