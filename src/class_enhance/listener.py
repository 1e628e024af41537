"""Listener capability receiving per-run informational and error events."""

from __future__ import annotations

import logging
from typing import Protocol

LOGGER = logging.getLogger(__name__)


class TransformListener(Protocol):
    def on_info(self, message: str) -> None: ...

    def on_error(self, message: str) -> None: ...


class LoggingListener:
    """Route listener events to a standard logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or LOGGER

    def on_info(self, message: str) -> None:
        self.logger.info(message)

    def on_error(self, message: str) -> None:
        self.logger.error(message)
