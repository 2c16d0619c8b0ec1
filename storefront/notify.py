"""
User-facing notifications (toast equivalent).
"""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


class LoggingNotifier:
    """Default notifier: writes notifications to the storefront.notify logger."""

    def success(self, message: str) -> None:
        logger.info("✓ %s", message)

    def error(self, message: str) -> None:
        logger.warning("✗ %s", message)

    def info(self, message: str) -> None:
        logger.info("%s", message)


__all__ = ("Notifier", "LoggingNotifier")
