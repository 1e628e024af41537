"""Error taxonomy for enhancement runs."""

from __future__ import annotations


class EnhanceError(Exception):
    """Base class for enhancement errors."""


class ConfigurationError(EnhanceError, ValueError):
    """Raised before any file is touched when run inputs are unusable."""


class EngineError(EnhanceError):
    """Raised when the enhancement engine fails on a single class."""

    def __init__(self, message: str, *, class_name: str | None = None) -> None:
        super().__init__(message)
        self.class_name = class_name


class EnhancementFailedError(EnhanceError):
    """Raised by the caller when failures exist and fail-on-exceptions is set."""

    def __init__(self, message: str, *, failed_classes: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.failed_classes = failed_classes
