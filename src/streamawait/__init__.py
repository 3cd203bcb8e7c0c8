"""Top-level package for streamawait."""

from __future__ import annotations

from .emitter import Emitter, EventEmitter, Pipeable, Subscribable, Subscription
from .exceptions import (
    ConfigValidationError,
    NotAStringError,
    StreamAwaitError,
    StreamError,
    StreamStateError,
)
from .operations import (
    TERMINAL_EVENTS,
    PendingOperation,
    bifurcate,
    extract,
    get_stream_from_string,
    on_event,
    pipe_with_events,
    stream_from_string,
    wait,
)
from .streams import (
    Duplex,
    FileReadStream,
    FileWriteStream,
    PassThrough,
    Readable,
    Stream,
    StringStream,
    Writable,
)

__all__ = [
    "ConfigValidationError",
    "Duplex",
    "Emitter",
    "EventEmitter",
    "FileReadStream",
    "FileWriteStream",
    "NotAStringError",
    "PassThrough",
    "PendingOperation",
    "Pipeable",
    "Readable",
    "Stream",
    "StreamAwaitError",
    "StreamError",
    "StreamStateError",
    "StringStream",
    "Subscribable",
    "Subscription",
    "TERMINAL_EVENTS",
    "Writable",
    "bifurcate",
    "extract",
    "get_stream_from_string",
    "on_event",
    "pipe_with_events",
    "stream_from_string",
    "wait",
]
