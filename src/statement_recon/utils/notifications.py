"""User-facing notification channel injected into the workflow."""

from enum import Enum
from typing import Optional, Protocol
import logging


class NotificationLevel(Enum):
    """Severity of a user notification."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notifier(Protocol):
    """Anything able to show a message to the adjudicator."""

    def notify(self, message: str, level: NotificationLevel) -> None:
        ...


_LOG_LEVELS = {
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Notifier that writes messages to the application log."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("statement_recon.notifications")

    def notify(self, message: str, level: NotificationLevel) -> None:
        self.logger.log(_LOG_LEVELS[level], "[%s] %s", level.value, message)
