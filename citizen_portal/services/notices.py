"""Transient user notices (the toast layer of a UI shell)."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Default notifier for headless use; shells replace it with real toasts."""

    def success(self, message: str) -> None:
        logger.info("Notice: %s", message)

    def error(self, message: str) -> None:
        logger.warning("Notice: %s", message)
