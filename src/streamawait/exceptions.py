"""Domain exception hierarchy for streamawait."""

from __future__ import annotations

from typing import Any


class StreamAwaitError(RuntimeError):
    """Base class for all streamawait errors."""


class StreamError(StreamAwaitError):
    """Raised for an ``error`` event whose payload is not an exception."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Stream emitted a non-exception error: {value!r}")
        self.value = value


class StreamStateError(StreamAwaitError):
    """Raised when a stream is used after it has been ended."""


class NotAStringError(StreamAwaitError, TypeError):
    """Raised when a string stream is requested for a non-string value."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Not a string: {value}")
        self.value = value


class ConfigValidationError(StreamAwaitError):
    """Raised when configuration cannot be validated safely."""
