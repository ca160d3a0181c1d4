"""User-facing notifications for orchestration code.

Formatters and clients stay silent; only the pipeline and the CLI notify.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class Notifier:
    """Receives user-facing messages. The base class discards them."""

    def success(self, message: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass


class LoggingNotifier(Notifier):
    """Routes notifications to the ``drive_analyzer.analysis.notify`` logger."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def success(self, message: str) -> None:
        self.log.info(message)

    def info(self, message: str) -> None:
        self.log.info(message)

    def warning(self, message: str) -> None:
        self.log.warning(message)

    def error(self, message: str) -> None:
        self.log.error(message)
