"""Notification sinks for non-fatal diagnostics from the sync core."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional


class Notifier(ABC):
    """Receives warnings and errors raised while syncing files.

    The sync core never writes to the console or a log file directly; it
    reports through the Notifier given to it at construction.
    """

    @abstractmethod
    def warning(self, message: str) -> None:
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        pass


class LoggingNotifier(Notifier):
    """Notifier that forwards messages to a logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("cachesync")

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)


class RecordingNotifier(Notifier):
    """Notifier that keeps messages in memory (useful for callers and tests)."""

    def __init__(self):
        self.warnings: List[str] = []
        self.errors: List[str] = []

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)
